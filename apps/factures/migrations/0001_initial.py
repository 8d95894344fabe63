from decimal import Decimal
from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('chantiers', '0001_initial'),
        ('articles', '0001_initial'),
        ('devis', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Facture',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('type', models.CharField(choices=[('standard', 'Facture'), ('acompte', 'Acompte'), ('situation', 'Situation')], default='standard', max_length=20)),
                ('situation_index', models.PositiveIntegerField(blank=True, null=True)),
                ('reference', models.CharField(db_index=True, max_length=50)),
                ('status', models.CharField(choices=[('en_attente', 'En attente'), ('envoyee', 'Envoyée'), ('payee', 'Payée'), ('retard', 'En retard')], db_index=True, default='en_attente', max_length=20)),
                ('date_emission', models.DateField(default=django.utils.timezone.localdate)),
                ('date_echeance', models.DateField(blank=True, db_index=True, null=True)),
                ('total_ht', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('total_ttc', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('chantier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='factures', to='chantiers.chantier')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='factures_facture_created', to=settings.AUTH_USER_MODEL)),
                ('devis', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='factures', to='devis.devis')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='FactureItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('description', models.TextField(blank=True)),
                ('quantity', models.DecimalField(decimal_places=2, default=Decimal('1.00'), max_digits=10)),
                ('unit', models.CharField(blank=True, max_length=20)),
                ('unit_price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=12)),
                ('tva', models.DecimalField(decimal_places=2, default=Decimal('20.00'), max_digits=5)),
                ('progress_percentage', models.DecimalField(decimal_places=2, default=Decimal('100.00'), max_digits=5, validators=[django.core.validators.MinValueValidator(Decimal('0')), django.core.validators.MaxValueValidator(Decimal('100'))])),
                ('position', models.PositiveIntegerField(default=0)),
                ('article', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='facture_items', to='articles.article')),
                ('facture', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='factures.facture')),
            ],
            options={
                'ordering': ['position', 'id'],
            },
        ),
        migrations.AddIndex(
            model_name='facture',
            index=models.Index(fields=['status', 'date_echeance'], name='factures_fa_status_4b1d2e_idx'),
        ),
    ]
