"""Tests for :mod:`image_beautifier.data.options`."""

from __future__ import annotations

import pytest
from PIL import Image

from image_beautifier.data.gradient import GradientMode, GradientSpec, GradientStop
from image_beautifier.data.options import BeautifierOptions, ParameterStore


@pytest.fixture()
def store() -> ParameterStore:
    return ParameterStore(Image.new("RGBA", (8, 8), (10, 20, 30, 255)))


def test_defaults_match_dialog_initial_values() -> None:
    options = BeautifierOptions()

    assert options.margin == 80
    assert options.padding == 40
    assert options.smart_padding is True
    assert options.rounded_corner == 20
    assert options.shadow_size == 30
    assert options.background is not None
    assert options.background.mode is GradientMode.FORWARD_DIAGONAL
    assert [stop.color for stop in options.background.stops] == [(255, 128, 128, 255), (128, 128, 255, 255)]


@pytest.mark.parametrize("name", ["margin", "padding", "rounded_corner", "shadow_size"])
def test_negative_sizes_are_rejected(store: ParameterStore, name: str) -> None:
    with pytest.raises(ValueError):
        BeautifierOptions(**{name: -1})
    with pytest.raises(ValueError):
        setattr(store, name, -5)
    assert getattr(store, name) == getattr(BeautifierOptions(), name)


def test_non_integer_sizes_are_rejected(store: ParameterStore) -> None:
    with pytest.raises(ValueError):
        store.margin = 2.5
    with pytest.raises(ValueError):
        store.padding = True


def test_update_applies_changes_and_rejects_unknown_names(store: ParameterStore) -> None:
    store.update(margin=5, smart_padding=False)

    assert store.margin == 5
    assert store.smart_padding is False
    with pytest.raises(KeyError):
        store.update(blur=3)


def test_options_property_returns_independent_copy(store: ParameterStore) -> None:
    options = store.options
    options.margin = 1
    options.background.stops.append(GradientStop((0, 0, 0), 50))

    assert store.margin == 80
    assert len(store.background.stops) == 2


def test_snapshot_is_isolated_from_later_changes(store: ParameterStore) -> None:
    snapshot = store.snapshot()
    store.margin = 3
    store.background.stops[0].location = 42.0
    store.background = None

    assert snapshot.options.margin == 80
    assert snapshot.options.background is not None
    assert snapshot.options.background.stops[0].location == 0.0
    assert snapshot.source is store.source


def test_background_setter_copies_gradient(store: ParameterStore) -> None:
    gradient = GradientSpec.from_colors([(0, 0, 255)], GradientMode.HORIZONTAL)
    store.background = gradient
    gradient.stops.clear()

    assert len(store.background.stops) == 1


def test_dict_roundtrip_preserves_values() -> None:
    options = BeautifierOptions(margin=3, padding=0, smart_padding=False, rounded_corner=7, shadow_size=2)

    restored = BeautifierOptions.from_dict(options.to_dict())

    assert restored == options


def test_from_dict_fills_missing_keys_with_defaults() -> None:
    restored = BeautifierOptions.from_dict({"margin": 12, "background": None})

    assert restored.margin == 12
    assert restored.padding == 40
    assert restored.background is None


def test_store_copies_initial_options() -> None:
    options = BeautifierOptions(margin=9)
    store = ParameterStore(Image.new("RGBA", (2, 2)), options)
    options.margin = 50

    assert store.margin == 9
