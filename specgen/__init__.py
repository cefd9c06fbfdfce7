import os
from pathlib import Path
from typing import MutableMapping, Optional, Tuple, Union

__version__ = "0.1.0"

ENV_FILE = os.getenv("SPECGEN_ENV_FILE", ".env")


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
	"""KEY=value pair from one .env line, or None for blanks and comments."""
	s = line.strip()
	if not s or s.startswith("#") or "=" not in s:
		return None
	key, val = s.split("=", 1)
	key = key.strip()
	if key.startswith("export "):
		key = key[len("export "):].strip()
	if not key:
		return None
	val = val.strip()
	if len(val) >= 2 and val[0] == val[-1] and val[0] in ("'", '"'):
		return key, val[1:-1]
	# unquoted values may carry a trailing " # comment"
	if " #" in val:
		val = val.split(" #", 1)[0].rstrip()
	return key, val


def load_env_file(path: Union[str, Path], environ: Optional[MutableMapping[str, str]] = None) -> int:
	"""Copy unset variables from a .env file into environ; returns how many were set."""
	target = os.environ if environ is None else environ
	env_path = Path(path)
	if not env_path.is_file():
		return 0
	loaded = 0
	try:
		text = env_path.read_text(encoding="utf-8")
	except OSError:
		return 0
	for line in text.splitlines():
		pair = _parse_env_line(line)
		if pair is None:
			continue
		key, val = pair
		if key not in target:
			target[key] = val
			loaded += 1
	return loaded


# Credentials only come from the real environment while pytest runs
if not os.getenv("PYTEST_CURRENT_TEST"):
	load_env_file(ENV_FILE)
