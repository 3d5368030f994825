"""Dynamo Seeder Test Suite.

Unit tests live in tests/unit/:
- test_chunking.py, test_writer.py, test_dispatch.py: chunking, retrying writes, bounded dispatch
- test_sources.py, test_loader.py: reading fixture files and loading one source
- test_fixtures.py: eligibility rules and the fixture orchestrator
- test_backend.py, test_cli.py: end-to-end runs against moto's DynamoDB

helpers.py holds a scripted fake backend for tests that don't need moto.
"""
