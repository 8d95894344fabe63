from django.urls import path
from .views import (
    DashboardHomeView,
    ClientsPageView,
    ChantiersPageView,
    ChantierDetailPageView,
    ChantierSuiviPageView,
    DevisPageView,
    DevisEditPageView,
    FacturesPageView,
    FactureEditPageView,
    ArticlesPageView,
    AnnoncesPageView,
    SettingsPageView,
    TrelloPageView,
)

urlpatterns = [
    path('', DashboardHomeView.as_view(), name='dashboard-home'),
    path('clients/', ClientsPageView.as_view(), name='dashboard-clients'),
    path('chantiers/', ChantiersPageView.as_view(), name='dashboard-chantiers'),
    path('chantiers/<int:pk>/', ChantierDetailPageView.as_view(), name='dashboard-chantier-detail'),
    path('chantiers/<int:pk>/suivi/', ChantierSuiviPageView.as_view(), name='dashboard-chantier-suivi'),
    path('devis/', DevisPageView.as_view(), name='dashboard-devis'),
    path('devis/<int:pk>/edit/', DevisEditPageView.as_view(), name='dashboard-devis-edit'),
    path('factures/', FacturesPageView.as_view(), name='dashboard-factures'),
    path('factures/<int:pk>/edit/', FactureEditPageView.as_view(), name='dashboard-facture-edit'),
    path('articles/', ArticlesPageView.as_view(), name='dashboard-articles'),
    path('annonces/', AnnoncesPageView.as_view(), name='dashboard-annonces'),
    path('settings/', SettingsPageView.as_view(), name='dashboard-settings'),
    path('trello/', TrelloPageView.as_view(), name='dashboard-trello'),
]
