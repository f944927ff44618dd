"""
Pytest configuration and shared fixtures for the annotator test suite.
"""

import sys
from pathlib import Path

import pytest

# Make the package importable when running from a source checkout
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from annotator.models import Candidate, Record  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )


def make_record(input_: str, index: int, **fields) -> Record:
    """Build a record with two candidates derived from its input."""
    return Record(
        id=fields.pop("id", f"src_{index}"),
        input=input_,
        candidates=[
            Candidate(id=f"{input_}_a", names=[input_, input_.lower()], distance=0.1),
            Candidate(id=f"{input_}_b", names=[input_.upper()], distance=0.75),
        ],
        **fields,
    )


@pytest.fixture
def foo_bar_records():
    """Foo, Bar, Foo: the smallest set with a frequency ranking."""
    return [
        make_record("Foo", 0),
        make_record("Bar", 1),
        make_record("Foo", 2),
    ]


@pytest.fixture
def mixed_records():
    """Records covering every optional field and golden state."""
    return [
        make_record("Amsterdam", 0, type="place", method="exact"),
        make_record("Amsterdam", 1, restricted=True, golden="Amsterdam_a"),
        make_record("Utrecht", 2, golden="?"),
        Record(input="Leiden", candidates=[]),
        make_record("Amsterdam", 4, restricted=True),
    ]


@pytest.fixture
def records_file(tmp_path, mixed_records):
    """Plain record file holding mixed_records."""
    from annotator.persistence import save_records

    path = tmp_path / "records.json"
    save_records(path, mixed_records)
    return path


@pytest.fixture
def record_factory():
    """The make_record helper, as a fixture."""
    return make_record
