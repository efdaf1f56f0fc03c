from collections.abc import Iterator, Mapping

from pydantic import BaseModel

RESERVED_TAGS = frozenset({"date", "datetime", "decimal", "map"})


class RecordRegistry(Mapping[str, type[BaseModel]]):
    """
    Closed set of record shapes a coder is allowed to produce and consume.

    Each record class is stored under a stable tag that is written into the
    payload, so renaming a class does not invalidate stored data while the
    tag stays the same. Subclasses are not matched implicitly: every concrete
    class that may be stored has to be registered under its own tag.
    """

    def __init__(self, records: Mapping[str, type[BaseModel]]) -> None:
        by_type: dict[type[BaseModel], str] = {}
        for tag, record_cls in records.items():
            if tag in RESERVED_TAGS:
                raise ValueError(f"Tag '{tag}' is reserved for scalar converters")
            if record_cls in by_type:
                raise ValueError(
                    f"{record_cls.__name__} is registered twice "
                    f"('{by_type[record_cls]}' and '{tag}')"
                )
            by_type[record_cls] = tag
        self._by_tag: dict[str, type[BaseModel]] = dict(records)
        self._by_type = by_type

    def __getitem__(self, tag: str) -> type[BaseModel]:
        return self._by_tag[tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_tag)

    def __len__(self) -> int:
        return len(self._by_tag)

    def tag_for(self, record_cls: type[BaseModel]) -> str:
        try:
            return self._by_type[record_cls]
        except KeyError:
            raise TypeError(
                f"{record_cls.__name__} is not a registered record type"
            ) from None
