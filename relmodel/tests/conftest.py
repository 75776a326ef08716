"""
relmodel test configuration.

Every test gets fresh models built from the test schemas, with the default
strict schema handlers.
"""

import pytest

from relmodel.model import make_model
from relmodel.tests.schemas import BLOG_SCHEMA, FORUM_SCHEMA


@pytest.fixture
def forum():
    return make_model(FORUM_SCHEMA)


@pytest.fixture
def blog():
    return make_model(BLOG_SCHEMA)
