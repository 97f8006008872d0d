"""Basic import tests to verify package structure."""


def test_import_package():
    """Test that the main package can be imported."""
    from tenx_cards import llm

    assert llm.__version__ == "0.1.0"


def test_public_api():
    from tenx_cards import llm

    for name in llm.__all__:
        assert hasattr(llm, name), name


def test_import_server():
    from tenx_cards.llm.server.app import app

    paths = {route.path for route in app.routes}
    assert {"/health", "/v1/chat", "/v1/models"} <= paths
