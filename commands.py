# commands.py: Flask CLI maintenance commands
# Usage: flask --app wsgi create-admin --email admin@example.com
import logging
from decimal import Decimal
import click
from flask.cli import with_appcontext
from extensions import db
from models import User, UserRole, Product
from mlm.accounts import create_member, generate_password
from mlm.volume import reconcile_bv
from mlm.exceptions import ConflictError


logger = logging.getLogger(__name__)

SEED_PRODUCTS = [
    # (name, price, bv, gst, category, purchase_type)
    ("VERAPURE ALKALINE {Basic Model}", "11500.00", "5750.00", "18.00", "water_purifier", "first_purchase"),
    ("VERAPURE ALKALINE {Premium Model}", "13500.00", "6750.00", "18.00", "water_purifier", "first_purchase"),
    ("VERAPURE+ ALKALINE {Elite}", "19100.00", "9550.00", "18.00", "water_purifier", "first_purchase"),
    ("VERAPURE {SUPER PREMIUM}", "24000.00", "12000.00", "18.00", "water_purifier", "first_purchase"),
    ("LED 32", "12500.00", "6250.00", "28.00", "led_tv", "second_purchase"),
    ("LED 43", "19000.00", "9500.00", "28.00", "led_tv", "second_purchase"),
    ("LED 55", "42000.00", "21000.00", "28.00", "led_tv", "second_purchase"),
    ("BLDC FAN SANORITA", "3800.00", "1900.00", "18.00", "ceiling_fan", "second_purchase"),
    ("BLDC FAN TEJAS", "5700.00", "2850.00", "18.00", "ceiling_fan", "second_purchase"),
    ("BLDC FAN Hunter", "7600.00", "3800.00", "18.00", "ceiling_fan", "second_purchase"),
]


def seed_products():
    """Insert any catalogue product that is missing. Returns how many were added."""
    added = 0
    for name, price, bv, gst, category, purchase_type in SEED_PRODUCTS:
        if Product.query.filter_by(name=name).first():
            continue
        db.session.add(Product(
            name=name,
            price=Decimal(price),
            bv=Decimal(bv),
            gst=Decimal(gst),
            category=category,
            purchase_type=purchase_type,
            is_active=True,
        ))
        added += 1
    db.session.commit()
    return added


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", default=None, help="Generated when omitted")
@click.option("--role", type=click.Choice([UserRole.ADMIN.value, UserRole.FOUNDER.value]), default=UserRole.ADMIN.value)
@click.option("--first-name", default="Admin")
@with_appcontext
def create_admin_command(email, password, role, first_name):
    """Create an admin (or founder) account, or promote an existing user."""
    user = User.query.filter(db.func.lower(User.email) == email.lower()).first()
    if user:
        user.role = role
        db.session.commit()
        click.echo(f"User id={user.id} ({user.email}) is now {role}.")
        return

    password = password or generate_password(12)
    try:
        user = create_member(email=email, password=password, first_name=first_name, role=role)
    except ConflictError as e:
        db.session.rollback()
        raise click.ClickException(e.message)
    db.session.commit()
    click.echo(f"Created {role} id={user.id} ({user.email}) with password: {password}")


@click.command("seed-products")
@with_appcontext
def seed_products_command():
    added = seed_products()
    click.echo(f"Seeded {added} products.")


@click.command("reconcile-bv")
@with_appcontext
def reconcile_bv_command():
    """Rewrite every BV counter from completed purchases."""
    fixed = reconcile_bv()
    db.session.commit()
    click.echo(f"Reconciled BV counters; {fixed} users corrected.")


def register_commands(app):
    for command in (create_admin_command, seed_products_command, reconcile_bv_command):
        app.cli.add_command(command)
