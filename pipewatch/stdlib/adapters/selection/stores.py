"""SelectionStore adapters: in-memory and URL-fragment backed."""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode

from pipewatch.kernel.ports.selection_store import SelectionStore


class InMemorySelectionStore(SelectionStore):
    """Keeps selection keys in a plain dict."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial) if initial else {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str | None) -> None:
        if value:
            self._values[key] = value
        else:
            self._values.pop(key, None)


class FragmentSelectionStore(SelectionStore):
    """Reads and writes keys in a URL fragment such as ``#job=7&task=build``.

    Keys it does not own are preserved in order, so the fragment can be
    shared with other hash parameters.

    Examples
    --------
    >>> store = FragmentSelectionStore("#job=7")
    >>> store.set("task", "build")
    >>> store.fragment
    '#job=7&task=build'
    """

    def __init__(self, fragment: str = "") -> None:
        self._pairs: dict[str, str] = dict(parse_qsl(fragment.lstrip("#"), keep_blank_values=True))

    @property
    def fragment(self) -> str:
        encoded = urlencode(self._pairs)
        return f"#{encoded}" if encoded else ""

    def get(self, key: str) -> str | None:
        return self._pairs.get(key) or None

    def set(self, key: str, value: str | None) -> None:
        if value:
            self._pairs[key] = value
        else:
            self._pairs.pop(key, None)
