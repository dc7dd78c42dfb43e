"""
ZPU test suite.

Tests are organized by layer:
    tests/unit/         Unit tests (in-memory ZTS/ZMS fakes, tmp_path files)
    tests/integration/  CLI tests driven through click's CliRunner

Run all tests:
    pytest

Run unit tests only:
    pytest tests/unit/
"""
