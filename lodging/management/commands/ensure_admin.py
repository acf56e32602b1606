# lodging/management/commands/ensure_admin.py
from django.core.management.base import BaseCommand, CommandError

from lodging.models import User


class Command(BaseCommand):
    help = "Create an administrator, or promote an existing user and reset their password (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True)
        parser.add_argument('--password', required=True)
        parser.add_argument('--first-name', default='Admin')
        parser.add_argument('--last-name', default='User')

    def handle(self, *args, **opts):
        email = opts['email'].strip().lower()
        if not email:
            raise CommandError('--email must not be empty')

        user = User.objects.filter(email=email).first()
        if user is None:
            User.objects.create_superuser(
                email=email, password=opts['password'],
                first_name=opts['first_name'], last_name=opts['last_name'],
            )
            self.stdout.write(self.style.SUCCESS(f"created: {email} (admin)"))
            return

        user.set_password(opts['password'])
        user.role = 'admin'
        user.is_staff = True
        user.is_superuser = True
        user.is_active = True
        user.save(update_fields=['password', 'role', 'is_staff', 'is_superuser', 'is_active', 'updated_at'])
        self.stdout.write(self.style.SUCCESS(f"promoted: {email} (admin)"))
