# run_tests.py
"""
Test runner for the whole application
Run this file to execute all tests with per app reporting
"""
import os
import sys
import django

# Setup Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')
django.setup()

from django.core.management import call_command  # noqa: E402
from django.test.utils import get_runner  # noqa: E402
from django.conf import settings  # noqa: E402

TEST_APPS = [
    'apps.core',
    'apps.users',
    'apps.clients',
    'apps.chantiers',
    'apps.articles',
    'apps.devis',
    'apps.factures',
    'apps.notifications',
    'apps.company',
    'apps.workflows',
    'apps.dashboard',
]

# Stock, invoicing and the workflow engine
CRITICAL_APPS = [
    'apps.articles',
    'apps.factures',
    'apps.workflows',
]


def run_suite(apps, title):
    print("=" * 80)
    print(title)
    print("=" * 80)
    print()

    TestRunner = get_runner(settings)
    test_runner = TestRunner(verbosity=2, interactive=False, keepdb=True)

    failures = test_runner.run_tests(apps)

    print()
    print("=" * 80)
    if failures:
        print(f"❌ TESTS FAILED: {failures} failure(s)")
    else:
        print("✅ ALL TESTS PASSED!")
    print("=" * 80)

    return failures


def run_specific_app(app_name):
    """Run tests for a specific app"""
    print(f"🧪 Running tests for {app_name}...")
    call_command('test', f'apps.{app_name}', verbosity=2)


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Run tests for the application')
    parser.add_argument(
        '--app',
        type=str,
        help='Run tests for a specific app (e.g., workflows, factures, articles)'
    )
    parser.add_argument(
        '--critical',
        action='store_true',
        help='Run only critical tests (stock, invoices and workflows)'
    )

    args = parser.parse_args()

    if args.critical:
        sys.exit(run_suite(CRITICAL_APPS, "CRITICAL TESTS - Stock, Invoices & Workflows"))
    elif args.app:
        run_specific_app(args.app)
    else:
        sys.exit(run_suite(TEST_APPS, "COMPLETE TEST SUITE"))
