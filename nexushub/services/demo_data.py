"""
NexusHub - Demo Clients
Fixed client specifications loaded by ClientService.seed_demo_data()
"""
from datetime import timedelta
from typing import List, Dict

from nexushub.database import utcnow


def demo_clients() -> List[Dict]:
    """Demo roster; sync timestamps are relative to the moment of seeding"""
    now = utcnow()

    return [
        {
            'profile': {
                'name': 'Alice Johnson',
                'company': 'Bloom Boutique',
                'email': 'alice@bloom.com',
                'siteUrl': 'bloomboutique.com.br',
                'siteType': 'ecommerce',
                'hostingExpiry': '15/12/2024',
                'maintenanceMode': False,
                'phone': '11987654321',
                'responsiblePerson': 'Alice Johnson',
            },
            'visits': [120, 145, 132, 190, 210, 180, 250],
            'posts': [
                {'title': 'Prévia da Coleção de Verão', 'status': 'published', 'date': '01/10/2023',
                 'content': '<p>Conheça as peças que chegam para o verão.</p>'},
                {'title': 'Dicas de Moda Sustentável', 'status': 'draft', 'date': '05/10/2023'},
            ],
            'integrations': [
                {'name': 'Google Analytics 4', 'status': 'connected',
                 'lastSync': now - timedelta(minutes=10)},
                {'name': 'Meta Pixel', 'status': 'connected', 'lastSync': now - timedelta(hours=1)},
                {'name': 'Mailchimp', 'status': 'disconnected'},
            ],
            'products': [
                {'name': 'Hospedagem E-commerce', 'description': 'Servidor dedicado com SSL', 'price': 149.9},
                {'name': 'Gestão de Conteúdo', 'description': 'Quatro artigos por mês', 'price': 600.0},
            ],
            'contracts': [
                {'title': 'Contrato de Manutenção 2024', 'startDate': '2024-01-01',
                 'endDate': '2024-12-31', 'value': 8988.0, 'status': 'active'},
            ],
        },
        {
            'profile': {
                'name': 'Marcos Silva',
                'company': 'TechFlow Soluções',
                'email': 'marcos@techflow.io',
                'siteUrl': 'techflow.io',
                'siteType': 'landing_page',
                'hostingExpiry': '20/01/2025',
                'maintenanceMode': False,
            },
            'visits': [40, 35, 60, 80, 75, 90, 110],
            'posts': [],
            'integrations': [
                {'name': 'Google Analytics 4', 'status': 'pending'},
            ],
            'products': [
                {'name': 'Landing Page', 'description': 'Página única com formulário de captação', 'price': 89.9},
            ],
            'contracts': [
                {'title': 'Desenvolvimento de Landing Page', 'startDate': '2024-02-01',
                 'endDate': '2024-03-01', 'value': 2500.0, 'status': 'expired'},
            ],
        },
        {
            'profile': {
                'name': 'Sara Lima',
                'company': 'Arquitetura Urbana',
                'email': 'sara@urbanarch.net',
                'siteUrl': 'urbanarch.net',
                'siteType': 'institutional',
                'hostingExpiry': '05/11/2024',
                'maintenanceMode': True,
            },
            'visits': [300, 280, 310, 290, 320, 310, 340],
            'posts': [
                {'title': 'Brutalismo Moderno em 2024', 'status': 'published', 'date': '15/09/2023'},
            ],
            'integrations': [
                {'name': 'Google Analytics 4', 'status': 'connected'},
                {'name': 'HubSpot CRM', 'status': 'connected', 'lastSync': now - timedelta(days=1)},
            ],
            'products': [],
            'contracts': [
                {'title': 'Site Institucional e Hospedagem', 'startDate': '2023-11-05',
                 'endDate': '2024-11-05', 'value': 4200.0, 'status': 'active'},
            ],
        },
    ]
