# apps/workflows/seeds.py
"""Public templates installed by the seed_templates command"""


def _step(id, action_type, label, x, y):
    return {
        'id': id, 'type': 'step', 'action_type': action_type, 'label': label,
        'status': 'pending', 'position_x': x, 'position_y': y,
    }


def _edges(*pairs):
    return [{'id': f'e{i}', 'source': s, 'target': t} for i, (s, t) in enumerate(pairs, start=1)]


SEED_TEMPLATES = [
    {
        'name': "🛠️ Dépannage Express",
        'description': "Scénario court pour les petites interventions rapides.",
        'nodes': [
            _step('1', 'play', 'Lancement', 50, 100),
            _step('2', 'quote', 'Devis Rapide', 250, 100),
            _step('3', 'setup', 'Intervention', 450, 100),
            _step('4', 'invoice', 'Facturation', 650, 100),
        ],
        'edges': _edges(('1', '2'), ('2', '3'), ('3', '4')),
    },
    {
        'name': "🏠 Rénovation Standard",
        'description': "Flux classique : Visite, Devis, Acompte, Travaux, Réception.",
        'nodes': [
            _step('1', 'play', 'Lancement', 50, 200),
            _step('2', 'site_visit', 'Visite Technique', 250, 100),
            _step('3', 'quote', 'Devis & Signature', 450, 100),
            _step('4', 'material_order', 'Commande Matériaux', 450, 300),
            _step('5', 'invoice', 'Facture Acompte', 650, 100),
            _step('6', 'setup', 'Travaux', 850, 200),
            _step('7', 'cleaning', 'Nettoyage', 1050, 200),
            _step('8', 'reception_report', 'PV de Réception', 1250, 200),
            _step('9', 'invoice', 'Facture Solde', 1450, 200),
        ],
        'edges': _edges(
            ('1', '2'), ('2', '3'), ('3', '5'), ('3', '4'), ('5', '6'),
            ('4', '6'), ('6', '7'), ('7', '8'), ('8', '9'),
        ),
    },
    {
        'name': "🏗️ Construction Neuve",
        'description': "Gros projet avec phases administratives et multiples lots.",
        'nodes': [
            _step('1', 'play', 'Lancement', 50, 250),
            _step('2', 'client_choice', 'Etude & Plans', 250, 250),
            _step('3', 'email', 'Dépôt Permis', 450, 250),
            _step('4', 'calendar', 'Planning Gros Oeuvre', 650, 150),
            _step('5', 'calendar', 'Planning Second Oeuvre', 650, 350),
            _step('6', 'setup', 'Fondations & Murs', 850, 150),
            _step('7', 'setup', 'Plomberie/Elec/Iso', 850, 350),
            _step('8', 'site_visit', 'Visite Cloisons', 1050, 250),
            _step('9', 'photo_report', 'Suivi Photo', 1250, 250),
            _step('10', 'reception_report', 'Livraison', 1450, 250),
        ],
        'edges': _edges(
            ('1', '2'), ('2', '3'), ('3', '4'), ('3', '5'), ('4', '6'),
            ('5', '7'), ('6', '8'), ('7', '8'), ('8', '9'), ('9', '10'),
        ),
    },
]
