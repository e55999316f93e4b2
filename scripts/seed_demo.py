#!/usr/bin/env python3
"""
NexusHub - Seed Demo Clients
Creates Bloom Boutique, TechFlow Soluções and Arquitetura Urbana when missing.
Safe to run repeatedly.

Usage:
    DEMO_PORTAL_PASSWORD=demo1234 python scripts/seed_demo.py
"""
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from nexushub import create_app
from nexushub.services.client_service import get_client_service


def main():
    app = create_app()
    with app.app_context():
        created = get_client_service().seed_demo_data(
            portal_password=app.config.get('DEMO_PORTAL_PASSWORD') or None
        )
        total = len(get_client_service().fetch_all_clients())
    print(f"Created {created} demo client(s); {total} client(s) in the roster")
    return 0


if __name__ == '__main__':
    load_dotenv()
    sys.exit(main())
