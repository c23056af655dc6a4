import importlib


def test_importable() -> None:
    module = importlib.import_module("orbit_track")
    assert hasattr(module, "parse_elements")
    for name in ("propagate", "sampling", "simulation", "timeline", "orbit_track.cli"):
        importlib.import_module(name)
