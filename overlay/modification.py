import dataclasses


@dataclasses.dataclass(frozen=True)
class Modification:
    offset: int
    data: bytes

    @property
    def end(self) -> int:
        return self.offset + len(self.data)

    def covers(self, position: int) -> bool:
        return self.offset <= position < self.end
