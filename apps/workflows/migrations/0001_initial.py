from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('chantiers', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ChantierNode',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('type', models.CharField(default='step', max_length=20)),
                ('action_type', models.CharField(choices=[('play', 'Lancement'), ('quote', 'Création devis'), ('invoice', 'Facturation'), ('client_choice', 'Choix client'), ('material_order', 'Commande matériaux'), ('email', 'Email automatique'), ('calendar', 'Rendez-vous'), ('setup', 'Mise en place'), ('site_visit', 'Visite technique'), ('cleaning', 'Nettoyage'), ('reception_report', 'PV de réception'), ('photo_report', 'Suivi photo')], db_index=True, max_length=30)),
                ('label', models.CharField(blank=True, max_length=255)),
                ('status', models.CharField(choices=[('pending', 'À faire'), ('waiting', 'En attente'), ('done', 'Terminé')], db_index=True, default='pending', max_length=10)),
                ('position_x', models.FloatField(default=0)),
                ('position_y', models.FloatField(default=0)),
                ('data', models.JSONField(blank=True, default=dict)),
                ('chantier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='nodes', to='chantiers.chantier')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='ChantierEdge',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('chantier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='edges', to='chantiers.chantier')),
                ('source', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outgoing', to='workflows.chantiernode')),
                ('target', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='incoming', to='workflows.chantiernode')),
            ],
            options={
                'ordering': ['id'],
                'unique_together': {('source', 'target')},
            },
        ),
        migrations.CreateModel(
            name='ChantierTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('nodes', models.JSONField(default=list)),
                ('edges', models.JSONField(default=list)),
                ('is_public', models.BooleanField(default=False)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='workflows_chantiertemplate_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ChantierLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.CharField(choices=[('info', 'Info'), ('warning', 'Warning'), ('error', 'Error')], default='info', max_length=10)),
                ('message', models.TextField()),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('chantier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='logs', to='chantiers.chantier')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
            },
        ),
    ]
