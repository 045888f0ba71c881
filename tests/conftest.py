import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Allow running the suite from a checkout without installing the package
for path in (str(SRC), str(ROOT)):
    if path not in sys.path:
        sys.path.insert(0, path)


@pytest.fixture(scope="session", autouse=True)
def scratch_data_dir(tmp_path_factory):
    """Keep preferences and logs written by the suite out of the checkout and the user's data dir."""
    data_dir = tmp_path_factory.mktemp("toolbridge-data")
    with pytest.MonkeyPatch.context() as mp:
        mp.setenv("TOOLBRIDGE_DATA_DIR", str(data_dir))
        yield data_dir
