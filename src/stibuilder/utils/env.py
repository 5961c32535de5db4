from typing import List

from ..datacls import Env


def parse_envs(env_str: str | None) -> List[Env]:
    """
    Parse 'NAME=VALUE,NAME2=VALUE2' into Env entries, preserving order.

    Values may contain '='; only the first one separates name and value.

    Raises:
        ValueError: if an entry has no '=' or an empty name
    """
    envs: List[Env] = []
    if not env_str:
        return envs
    for pair in env_str.split(','):
        pair = pair.strip()
        if not pair:
            continue
        name, sep, value = pair.partition('=')
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"Invalid environment entry '{pair}', expected NAME=VALUE")
        envs.append(Env(name=name, value=value))
    return envs
