from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from faker import Faker
import random

from apps.articles.models import Article

User = get_user_model()

CATEGORIES = {
    'Plomberie': ['Tube PER 16mm', 'Raccord laiton', 'Mitigeur lavabo', 'Siphon PVC'],
    'Électricité': ['Câble 2.5mm²', 'Prise 16A', 'Disjoncteur 20A', 'Gaine ICTA'],
    'Maçonnerie': ['Sac ciment 35kg', 'Parpaing 20x20x50', 'Sable 0/4', 'Treillis soudé'],
    'Peinture': ['Peinture mate 10L', 'Sous-couche 5L', 'Rouleau 180mm', 'Enduit de lissage'],
    'Carrelage': ['Carrelage 60x60', 'Colle carrelage C2', 'Joint gris 5kg', 'Croisillons 3mm'],
}
UNITS = ['u', 'm', 'm²', 'kg', 'L', 'sac']


class Command(BaseCommand):
    help = "Seed the database with random articles for testing"

    def add_arguments(self, parser):
        parser.add_argument('--count', type=int, default=20)
        parser.add_argument('--user', type=str, required=True, help="Username owning the articles")

    def handle(self, *args, **options):
        fake = Faker('fr_FR')
        count = options['count']

        try:
            owner = User.objects.get(username=options['user'])
        except User.DoesNotExist:
            raise CommandError(f"User '{options['user']}' does not exist")

        articles = []
        for _ in range(count):
            category = random.choice(list(CATEGORIES))
            cost_ht = round(random.uniform(1.0, 150.0), 2)
            # Selling price keeps a 20 to 80% margin
            price_ht = round(cost_ht * random.uniform(1.2, 1.8), 2)

            articles.append(Article(
                name=f"{random.choice(CATEGORIES[category])} {fake.word().capitalize()}",
                category=category,
                unit=random.choice(UNITS),
                cost_ht=Decimal(str(cost_ht)),
                price_ht=Decimal(str(price_ht)),
                tva=Decimal(random.choice(['20.00', '10.00', '5.50'])),
                stock=random.randint(0, 200),
                created_by=owner,
            ))

        Article.objects.bulk_create(articles)
        self.stdout.write(self.style.SUCCESS(f"✅ Successfully created {count} articles!"))
