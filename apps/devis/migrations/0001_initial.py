from decimal import Decimal
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('chantiers', '0001_initial'),
        ('articles', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Devis',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('reference', models.CharField(editable=False, max_length=20, unique=True)),
                ('name', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('brouillon', 'Brouillon'), ('en_attente', 'En attente'), ('en_attente_approbation', "En attente d'approbation"), ('valide', 'Validé'), ('signe', 'Signé'), ('approuve', 'Approuvé'), ('refuse', 'Refusé')], db_index=True, default='brouillon', max_length=30)),
                ('notes', models.TextField(blank=True, default="Validité de l'offre : 30 jours.\nAcompte de 30% à la commande.")),
                ('total_ht', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_ttc', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('chantier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='devis', to='chantiers.chantier')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='devis_devis_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name_plural': 'devis',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='DevisItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('item_type', models.CharField(choices=[('item', 'Ligne'), ('section', 'Section')], default='item', max_length=10)),
                ('description', models.TextField(blank=True)),
                ('quantity', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=10)),
                ('unit', models.CharField(blank=True, max_length=20)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('cost_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('tva', models.DecimalField(decimal_places=2, default=Decimal('20.00'), max_digits=5)),
                ('details', models.JSONField(blank=True, default=list)),
                ('position', models.PositiveIntegerField(default=0)),
                ('article', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='devis_items', to='articles.article')),
                ('devis', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='devis.devis')),
            ],
            options={
                'ordering': ['position', 'id'],
            },
        ),
    ]
