from django.core.management.base import BaseCommand, CommandError
from django.contrib.auth import get_user_model


class Command(BaseCommand):
    help = "Ensure an administrator account exists for the review queue"

    def add_arguments(self, parser):
        parser.add_argument('--username', default='admin')
        parser.add_argument('--email', default='admin@example.com')
        parser.add_argument('--password', required=True)
        parser.add_argument('--role', default='super_admin', choices=['super_admin', 'admin', 'sub_admin'])

    def handle(self, *args, **opts):
        User = get_user_model()
        if len(opts['password']) < 8:
            raise CommandError('Password must be at least 8 characters')
        u, created = User.objects.get_or_create(username=opts['username'], defaults={
            'email': opts['email'],
            'is_staff': True,
            'role': opts['role'],
        })
        if created:
            u.set_password(opts['password'])
            u.save(update_fields=['password'])
        elif u.role != opts['role']:
            u.role = opts['role']
            u.save(update_fields=['role'])
        verb = 'Created' if created else 'Updated'
        self.stdout.write(self.style.SUCCESS(f"{verb} administrator {u.username} ({u.role})"))
