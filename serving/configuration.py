import dataclasses
import json
import os


@dataclasses.dataclass(frozen=True)
class ServerConfig:
    host: str = '127.0.0.1'
    port: int = 8000

    # Number of bytes copied from an overlay per socket write
    chunk_size: int = 2 ** 16

    # None logs to stderr
    log_file: str | None = None
    log_level: str = 'INFO'


def load_config(path: str | None) -> ServerConfig:
    """
    Reads a json object of overrides for ServerConfig, a missing file yields the defaults
    """
    if path is None or not os.path.exists(path):
        return ServerConfig()
    with open(path, mode='r', encoding='utf-8') as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"{path}: expected a json object")
    known = {field.name for field in dataclasses.fields(ServerConfig)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"{path}: unknown config keys: {', '.join(sorted(unknown))}")
    return ServerConfig(**overrides)
