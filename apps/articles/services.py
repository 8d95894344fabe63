# apps/articles/services.py
"""
Service layer for articles and stock operations.
"""
import logging

from django.db import transaction
from django.db.models import F

from apps.core.cache import revalidate_paths
from apps.core.exceptions import ActionError, InsufficientStockError, ResourceNotFoundError
from apps.articles.models import Article, ArticleComposant
from apps.articles.signals import stock_changed

logger = logging.getLogger(__name__)

ARTICLE_PAGES = ('/dashboard/articles',)


class ArticleService:

    @staticmethod
    def create_article(user, data):
        try:
            article = Article.objects.create(created_by=user, **data)
        except Exception as e:
            logger.error("Erreur création article: %s", e)
            raise ActionError("Erreur lors de la création")

        revalidate_paths(ARTICLE_PAGES)
        return article

    @staticmethod
    @transaction.atomic
    def import_articles(user, rows):
        articles = Article.objects.bulk_create([
            Article(created_by=user, **row) for row in rows
        ])
        revalidate_paths(ARTICLE_PAGES)
        logger.info("Imported %s articles for user %s", len(articles), user.pk)
        return articles

    @staticmethod
    def set_composant(parent, child, quantity):
        """Add a component to a composite article, or change its quantity"""
        if parent.pk == child.pk:
            raise ActionError("Un article ne peut pas se composer lui-même")

        composant, _ = ArticleComposant.objects.update_or_create(
            parent=parent, child=child, defaults={'quantity': quantity}
        )
        revalidate_paths(ARTICLE_PAGES)
        return composant

    @staticmethod
    def remove_composant(parent, composant_id):
        deleted, _ = ArticleComposant.objects.filter(parent=parent, pk=composant_id).delete()
        if not deleted:
            raise ResourceNotFoundError()
        revalidate_paths(ARTICLE_PAGES)


class StockService:
    """
    Stock changes are done with a row lock and an F() expression so
    concurrent increments never lose an update.
    """

    @staticmethod
    @transaction.atomic
    def adjust_stock(article, quantity, operation='add'):
        """
        Adjust article stock.

        Args:
            article: Article instance or article ID
            quantity: Amount to adjust (int)
            operation: 'add' or 'subtract'

        Returns:
            Updated Article instance

        Raises:
            InsufficientStockError: If trying to subtract more than available
            ResourceNotFoundError: If the article does not exist
        """
        quantity = abs(int(quantity))
        pk = article if isinstance(article, int) else article.pk

        try:
            article = Article.objects.select_for_update().get(pk=pk)
        except Article.DoesNotExist:
            raise ResourceNotFoundError("Article introuvable")

        if quantity == 0:
            return article

        if operation == 'subtract':
            if article.stock < quantity:
                raise InsufficientStockError(
                    f"Stock insuffisant pour {article.name} "
                    f"(disponible : {article.stock}, demandé : {quantity})"
                )
            Article.objects.filter(pk=pk).update(stock=F('stock') - quantity)
        elif operation == 'add':
            Article.objects.filter(pk=pk).update(stock=F('stock') + quantity)
        else:
            raise ValueError("Operation must be 'subtract' or 'add'")

        article.refresh_from_db()
        stock_changed.send(sender=Article, instance=article)
        logger.info("Stock %s %s for article %s -> %s", operation, quantity, pk, article.stock)
        return article
