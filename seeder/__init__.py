"""Load seed fixtures into DynamoDB tables.

Fixture files are split into 25-item BatchWriteItem calls, written with
bounded concurrency, and retried while a new table is still provisioning.

Usage:
    python -m seeder fixtures.yml --stage dev
    python -m seeder serverless.yml --mode deploy --stage prod
"""

from seeder.lib.backend import WriteTarget, WriteVariant
from seeder.lib.fixtures import FixtureDefinition, InvocationMode, load_all

__version__ = "1.0.0"

__all__ = [
    "FixtureDefinition",
    "InvocationMode",
    "WriteTarget",
    "WriteVariant",
    "load_all",
]
