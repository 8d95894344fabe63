from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from faker import Faker
import random

from apps.clients.models import Client

User = get_user_model()


class Command(BaseCommand):
    help = "Seed the database with random clients for testing"

    def add_arguments(self, parser):
        parser.add_argument('--count', type=int, default=20)
        parser.add_argument('--user', type=str, required=True, help="Username owning the clients")

    def handle(self, *args, **options):
        fake = Faker('fr_FR')
        count = options['count']

        try:
            owner = User.objects.get(username=options['user'])
        except User.DoesNotExist:
            raise CommandError(f"User '{options['user']}' does not exist")

        clients = []
        for _ in range(count):
            client_type = random.choice([Client.TYPE_PARTICULIER, Client.TYPE_PROFESSIONNEL])

            if client_type == Client.TYPE_PROFESSIONNEL:
                name = f"{fake.company()} {random.choice(['SARL', 'SAS', 'EURL', 'SA'])}"
                siret = fake.siret().replace(' ', '')
                iban = fake.iban() if random.choice([True, False]) else ''
            else:
                name = f"{fake.first_name()} {fake.last_name()}"
                siret = ''
                iban = ''

            email = fake.email()
            clients.append(Client(
                name=name,
                type=client_type,
                email=email,
                billing_email=email if random.choice([True, False]) else '',
                phone_mobile=f"06{random.randint(10000000, 99999999)}",
                phone_fixe=f"01{random.randint(10000000, 99999999)}" if random.choice([True, False]) else '',
                address_line1=fake.street_address(),
                city=fake.city(),
                zip_code=fake.postcode(),
                siret=siret,
                iban=iban,
                created_by=owner,
            ))

        Client.objects.bulk_create(clients)
        self.stdout.write(self.style.SUCCESS(f"✅ Successfully created {count} clients!"))
