"""Seed sale statuses and baseline permission rules, plus optional demo data."""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from access_control.gate import GatedPermissionStore
from access_control.roles import Role
from access_control.store import PermissionMatrixStore
from sales.models import Product, SaleStatus

# (id, name, color); the first entry is the pending status new sales start in.
SEED_STATUSES = [
    (1, "Pendiente", "#f59e0b"),
    (2, "En proceso", "#3b82f6"),
    (3, "Instalada", "#10b981"),
    (4, "Rechazada", "#ef4444"),
]

DEMO_PRODUCTS = ["Fibra 300", "Fibra 600", "Movil Prepago"]

# email -> (role, full name, password)
DEMO_USERS = {
    "creator@example.com": (Role.CREATOR, "Demo Creator", "creatorpass"),
    "admin@example.com": (Role.ADMIN, "Demo Admin", "adminpass"),
    "supervisor@example.com": (Role.SUPERVISOR, "Demo Supervisor", "supervisorpass"),
    "digitacion1@example.com": (Role.DIGITACION, "Demo Digitacion 1", "digitacionpass"),
    "digitacion2@example.com": (Role.DIGITACION, "Demo Digitacion 2", "digitacionpass"),
    "rep@example.com": (Role.REPRESENTATIVE, "Demo Representative", "reppass"),
}


class Command(BaseCommand):
    """Management command to seed statuses, baseline tabs, and demo data."""

    help = (
        "Seed sale statuses and allow the baseline tabs for every role. "
        "Use --demo to also create demo products and users."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--demo",
            action="store_true",
            help="Create demo products and one user per main role.",
        )

    def handle(self, *args, **options):
        """Entrypoint for the management command."""
        self.stdout.write("Seeding sale statuses...")
        self._create_statuses()

        self.stdout.write("Seeding baseline permissions...")
        created = seed_baseline_tabs()
        self.stdout.write(f"{created} permission rules created.")

        if options.get("demo"):
            self._create_demo_data()
        self.stdout.write(self.style.SUCCESS("Permission seed completed."))

    @staticmethod
    def _create_statuses():
        for pk, name, color in SEED_STATUSES:
            SaleStatus.objects.update_or_create(id=pk, defaults={"name": name, "color": color})

    def _create_demo_data(self):
        """Create demo products and users; digitacion users get every product as a skill."""
        products = [Product.objects.get_or_create(name=name)[0] for name in DEMO_PRODUCTS]
        skills = [str(product.pk) for product in products]

        User = get_user_model()
        for email, (role, full_name, password) in DEMO_USERS.items():
            if User.objects.filter(email__iexact=email).exists():
                continue
            extra = {"full_name": full_name, "skills": skills if role == Role.DIGITACION else []}
            if role == Role.CREATOR:
                User.objects.create_superuser(email, password, **extra)
            else:
                User.objects.create_user(email, password, role=role, **extra)
        self.stdout.write(self.style.WARNING("Demo users created with well-known passwords."))


def seed_baseline_tabs(tabs=None) -> int:
    """Allow each baseline tab for every non-creator role, as the creator.

    Tabs that already have any rule are left untouched. Returns the number of
    rules created.
    """

    gate = GatedPermissionStore(PermissionMatrixStore(), Role.CREATOR)
    roles = [role.value for role in Role if role != Role.CREATOR]
    created = 0
    for tab in tabs if tabs is not None else settings.BASELINE_TABS:
        created += len(gate.seed_defaults(tab, roles, default_allowed=True))
    return created
