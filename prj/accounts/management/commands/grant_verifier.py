"""
Give (or take away) the document-verification capability.

    python manage.py grant_verifier alice
    python manage.py grant_verifier alice --revoke
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = 'Grant or revoke the documents.verify_document permission for a user.'

    def add_arguments(self, parser):
        parser.add_argument('username')
        parser.add_argument(
            '--revoke',
            action='store_true',
            help='Remove the permission instead of granting it.',
        )

    def handle(self, *args, **options):
        User = get_user_model()
        try:
            user = User.objects.get(username=options['username'])
        except User.DoesNotExist:
            raise CommandError(f"User '{options['username']}' does not exist.")

        permission = Permission.objects.get(
            content_type__app_label='documents',
            codename='verify_document',
        )
        if options['revoke']:
            user.user_permissions.remove(permission)
            self.stdout.write(self.style.SUCCESS(f'Revoked verifier access from {user.username}.'))
        else:
            user.user_permissions.add(permission)
            self.stdout.write(self.style.SUCCESS(f'{user.username} can now verify documents.'))
