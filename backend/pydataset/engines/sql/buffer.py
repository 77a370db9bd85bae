"""SQL text buffer: fragments appended in order and read back as one statement."""


class SqlBuffer:
    def __init__(self) -> None:
        self._lines: list[str] = []

    def add(self, sql: str) -> "SqlBuffer":
        self._lines.append(sql)
        return self

    def clear(self) -> None:
        self._lines.clear()

    def text(self) -> str:
        return "\n".join(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def __bool__(self) -> bool:
        return any(line.strip() for line in self._lines)

    def __str__(self) -> str:
        return self.text()


def normalize_newlines(sql: str) -> str:
    """Turn CR/LF variants into ``\\n`` and indent continuation lines by one space."""
    sql = sql.replace("\r\n", "\n").replace("\r", "\n")
    return sql.replace("\n", "\n ")
