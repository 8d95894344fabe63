# apps/articles/tests.py
"""
Articles app tests - catalogue, composite articles and stock operations
"""
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.articles.models import Article, ArticleComposant
from apps.articles.services import StockService
from apps.core.cache import get_path_version
from apps.core.exceptions import InsufficientStockError

User = get_user_model()


class ArticleModelTests(TestCase):
    """Test Article model"""

    def test_defaults(self):
        """Test default VAT rate and stock"""
        article = Article.objects.create(name='Prise 16A')

        self.assertEqual(article.tva, Decimal('20.00'))
        self.assertEqual(article.stock, 0)
        self.assertTrue(article.is_out_of_stock)

    def test_margin_and_stock_value(self):
        """Test computed margin and stock value"""
        article = Article.objects.create(
            name='Mitigeur', price_ht=Decimal('89.90'), cost_ht=Decimal('52.40'), stock=3
        )

        self.assertEqual(article.margin_ht, Decimal('37.50'))
        self.assertEqual(article.stock_value, Decimal('157.20'))

    def test_components_snapshot(self):
        """Test a composite article lists its components"""
        kit = Article.objects.create(name='Kit salle de bain')
        tube = Article.objects.create(name='Tube PER', unit='m')
        ArticleComposant.objects.create(parent=kit, child=tube, quantity=Decimal('12.5'))

        self.assertEqual(kit.components_snapshot(), [
            {'article_id': tube.pk, 'name': 'Tube PER', 'quantity': 12.5, 'unit': 'm'}
        ])


class StockServiceTests(TestCase):
    """Test StockService"""

    def setUp(self):
        self.article = Article.objects.create(name='Sac ciment', stock=10)

    def test_repeated_increments_are_exact(self):
        """Test stock increments never lose an update"""
        for _ in range(5):
            StockService.adjust_stock(self.article, 3, 'add')

        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 25)

    def test_increment_from_stale_instance(self):
        """Test an increment uses the database value, not the in-memory one"""
        stale = Article.objects.get(pk=self.article.pk)
        Article.objects.filter(pk=self.article.pk).update(stock=40)

        article = StockService.adjust_stock(stale, 2, 'add')

        self.assertEqual(article.stock, 42)

    def test_subtract_stock(self):
        """Test subtracting stock"""
        article = StockService.adjust_stock(self.article.pk, 4, 'subtract')

        self.assertEqual(article.stock, 6)

    def test_insufficient_stock(self):
        """Test subtracting more than available raises"""
        with self.assertRaises(InsufficientStockError):
            StockService.adjust_stock(self.article, 11, 'subtract')

        self.article.refresh_from_db()
        self.assertEqual(self.article.stock, 10)


class ArticleAPITests(APITestCase):
    """Test Article API endpoints"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(username='artisan', email='artisan@trame.test', password='testpass123')
        self.client.force_authenticate(user=self.user)

    def test_create_article(self):
        """Test creating an article revalidates the articles page"""
        version = get_path_version('/dashboard/articles')
        data = {
            'name': 'Carrelage 60x60',
            'category': 'Carrelage',
            'unit': 'm²',
            'price_ht': '34.90',
            'cost_ht': '21.00',
            'tva': '10.00'
        }

        response = self.client.post(reverse('articles-list'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        article = Article.objects.get(name='Carrelage 60x60')
        self.assertEqual(article.created_by, self.user)
        self.assertEqual(article.price_ht, Decimal('34.90'))
        self.assertGreater(get_path_version('/dashboard/articles'), version)

    def test_create_article_non_numeric_price(self):
        """Test non numeric prices are reported as invalid data"""
        response = self.client.post(
            reverse('articles-list'),
            {'name': 'X', 'price_ht': 'abc'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {'error': 'Données invalides'})

    def test_import_articles(self):
        """Test bulk import"""
        data = {'articles': [
            {'name': 'Vis 4x40', 'price_ht': '0.05'},
            {'name': 'Cheville 6mm', 'price_ht': '0.04', 'stock': 500},
        ]}

        response = self.client.post(reverse('articles-import-articles'), data, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(Article.objects.get(name='Cheville 6mm').stock, 500)

    def test_adjust_stock_endpoint(self):
        """Test the stock action adds stock"""
        article = Article.objects.create(name='Joint', stock=1, created_by=self.user)

        response = self.client.post(
            reverse('articles-adjust-stock', args=[article.pk]),
            {'quantity': 4, 'operation': 'add'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 5)

    def test_adjust_stock_insufficient(self):
        """Test subtracting too much returns an error message"""
        article = Article.objects.create(name='Joint', stock=1, created_by=self.user)

        response = self.client.post(
            reverse('articles-adjust-stock', args=[article.pk]),
            {'quantity': 4, 'operation': 'subtract'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Stock insuffisant', response.data['error'])

    def test_composants(self):
        """Test adding then removing a component"""
        kit = Article.objects.create(name='Kit', created_by=self.user)
        colle = Article.objects.create(name='Colle', created_by=self.user)

        response = self.client.post(
            reverse('articles-add-composant', args=[kit.pk]),
            {'child': colle.pk, 'quantity': '2'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        composant_id = response.data['composant']['id']

        response = self.client.delete(
            reverse('articles-remove-composant', args=[kit.pk, composant_id])
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ArticleComposant.objects.filter(parent=kit).exists())

    def test_self_composant_rejected(self):
        """Test an article cannot be its own component"""
        kit = Article.objects.create(name='Kit', created_by=self.user)

        response = self.client.post(
            reverse('articles-add-composant', args=[kit.pk]),
            {'child': kit.pk, 'quantity': '1'},
            format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
