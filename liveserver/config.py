import os
from dataclasses import dataclass
from typing import Union

RELOAD_PATH = "/__source"


@dataclass(frozen=True)
class ServeConfig:
    entry: str
    base: str
    entry_is_file: bool = False
    cors: bool = False
    quiet: bool = False
    logs: bool = True
    host: str = "localhost"
    port: int = 5000
    single: Union[bool, str] = False
    preview: bool = False

    @classmethod
    def from_entry(cls, entry=".", **options):
        """Build the config for ``entry``, a file or a directory.

        Raises FileNotFoundError when the entry does not exist.
        """
        entry = os.path.abspath(entry or ".")
        if not os.path.exists(entry):
            raise FileNotFoundError(f"No such file or directory: {entry}")
        entry_is_file = os.path.isfile(entry)
        base = os.path.dirname(entry) if entry_is_file else entry
        return cls(entry=entry, base=base, entry_is_file=entry_is_file, **options)

    @property
    def reload(self):
        return not self.preview

    @property
    def log_requests(self):
        return self.logs and not self.quiet

