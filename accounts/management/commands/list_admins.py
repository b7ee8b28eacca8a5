from django.core.management.base import BaseCommand, CommandError

from ...roles import Role
from ...services import UserService
from ._backend import add_operator_arguments, operator_client


class Command(BaseCommand):
    help = "Lists administrator accounts known to the CitiWatch backend."

    def add_arguments(self, parser):
        add_operator_arguments(parser)

    def handle(self, *args, **options):
        result = UserService(operator_client(options)).get_all_users()
        if not result.success:
            raise CommandError(f"Could not fetch users: {result.message}")

        admins = [u for u in result.data or [] if Role.parse(u.get("role")) is Role.ADMIN]
        for admin in admins:
            self.stdout.write(f"{admin.get('email')}\t{admin.get('fullName', '')}\t{admin.get('createdOn', '')}")
        self.stdout.write(self.style.SUCCESS(f"{len(admins)} admin(s)"))
