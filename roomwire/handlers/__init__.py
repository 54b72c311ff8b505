"""Connection engine: socket lifecycle, packet dispatch, correlation and the room mirror."""

__all__: list[str] = []
