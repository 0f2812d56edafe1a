"""Unit tests for package metadata and exports."""

import cache_codec


# Test version string and tuple agree.
def test_version():
    assert cache_codec.__version__ == "0.1.0"
    assert cache_codec.VERSION == (0, 1, 0)


# Test every name in __all__ is importable.
def test_all_exports():
    for name in cache_codec.__all__:
        assert hasattr(cache_codec, name)
