from __future__ import annotations

import pytest

pytest.importorskip("streamlit")

from wikidata_explorer.models import Entity
from wikidata_explorer.ui.cards import CardListView


def _entities() -> list[Entity]:
    return [Entity(id="Q1", label="One"), Entity(id="Q2", label="Two")]


def test_rows_flag_selected_and_comparison() -> None:
    view = CardListView(
        _entities(),
        on_select=lambda entity: None,
        on_compare_toggle=lambda entity: None,
        selected_id="Q1",
        comparison_id="Q2",
    )

    rows = view.rows()

    assert [(row.is_selected, row.is_comparison) for row in rows] == [
        (True, False),
        (False, True),
    ]


def test_actions_delegate_to_callbacks() -> None:
    selected: list[str] = []
    toggled: list[str] = []
    view = CardListView(
        _entities(),
        on_select=lambda entity: selected.append(entity.id),
        on_compare_toggle=lambda entity: toggled.append(entity.id),
    )

    view.select("Q2")
    view.toggle_comparison("Q1")

    assert selected == ["Q2"]
    assert toggled == ["Q1"]

    with pytest.raises(KeyError):
        view.select("Q9")


class _FakeBlock:
    def __init__(self, recorder: "_FakeStreamlit") -> None:
        self._recorder = recorder

    def __enter__(self) -> "_FakeBlock":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None

    def columns(self, spec):
        count = spec if isinstance(spec, int) else len(spec)
        return [_FakeBlock(self._recorder) for _ in range(count)]

    def image(self, url: str, **kwargs) -> None:
        self._recorder.images.append((url, kwargs))

    def button(self, label: str, **kwargs) -> None:
        self._recorder.buttons.append(label)

    def markdown(self, *args, **kwargs) -> None:
        return None

    caption = markdown
    write = markdown
    info = markdown


class _FakeStreamlit(_FakeBlock):
    def __init__(self) -> None:
        self.images: list[tuple[str, dict]] = []
        self.buttons: list[str] = []
        super().__init__(self)

    def container(self, **kwargs) -> _FakeBlock:
        return _FakeBlock(self)


def test_render_sizes_images_with_width(monkeypatch) -> None:
    fake_st = _FakeStreamlit()
    monkeypatch.setattr("wikidata_explorer.ui.cards.st", fake_st)
    entities = [
        Entity(id="Q1", label="One", image_url="https://img.example/1.png"),
        Entity(id="Q2", label="Two"),
    ]
    view = CardListView(
        entities,
        on_select=lambda entity: None,
        on_compare_toggle=lambda entity: None,
        comparison_id="Q2",
    )

    view.render()

    assert fake_st.images == [("https://img.example/1.png", {"width": 80})]
    assert fake_st.buttons == ["Select", "Compare", "Select", "Remove comparison"]
