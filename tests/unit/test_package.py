"""Tests for package-level functionality."""


def test_package_imports() -> None:
    """Verify the package imports correctly."""
    from probewatch import __version__

    assert __version__
    assert isinstance(__version__, str)


def test_version_format() -> None:
    """Verify the version follows expected format."""
    from probewatch import __version__

    parts = __version__.split(".")
    assert len(parts) >= 2, f"Version should have at least major.minor: {__version__}"


def test_public_api() -> None:
    import probewatch

    for name in probewatch.__all__:
        assert hasattr(probewatch, name), name
