import re

from django.core.management.base import BaseCommand, CommandError

from ...services import UserService
from ._backend import add_operator_arguments, operator_client

EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Command(BaseCommand):
    help = "Creates an administrator account on the CitiWatch backend."

    def add_arguments(self, parser):
        parser.add_argument("--email", required=True)
        parser.add_argument("--password", required=True)
        parser.add_argument("--full-name", default="System Administrator")
        add_operator_arguments(parser)

    def handle(self, *args, **options):
        email = options["email"].strip()
        password = options["password"]

        if not EMAIL.match(email):
            raise CommandError("Invalid email format.")
        if len(password) < 6:
            raise CommandError("Password must be at least 6 characters long.")

        client = operator_client(options)
        result = UserService(client).create_admin_user(options["full_name"], email, password)
        if not result.success:
            raise CommandError(f"Could not create admin '{email}': {result.message}")

        self.stdout.write(self.style.SUCCESS(f"Admin created: {email}"))
