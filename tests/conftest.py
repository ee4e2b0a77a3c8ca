from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from climatecast.settings import get_settings

GISTEMP_SAMPLE = """Land-Ocean: Global Means
Year,Jan,Feb,Mar,Apr,May,Jun,Jul,Aug,Sep,Oct,Nov,Dec,J-D,D-N,DJF,MAM,JJA,SON
1880,-.18,-.24,-.09,-.16,-.10,-.21,-.18,-.10,-.14,-.23,-.22,-.18,-.17,***,***,-.12,-.16,-.20
1881,-.19,-.14,***,.05,.06,-.18,.01,-.03,-.15,-.22,-.18,-.07,-.09,-.09,-.17,.04,-.07,-.18
1882,.16,.14,.05,-.16,-.13,-.22,-.16,-.07,-.14,-.23,-.17,-.36,-.11,-.09,.08,-.08,-.15,-.18
1883,-.29,-.36,-.12,***,***,***,***,***,***,***,***,***,***,***,-.34,***,***,***
"""

CO2_SAMPLE = """# --------------------------------------------------------------------
# USE OF NOAA GML DATA
#
#  year    month   decimal       average   de-season  #days  st.dev  unc. of
#                    date                   alized            of days  mon mean
  1958     3     1958.2027     315.71     314.44     -1    -9.99   -0.99
  1958     4     1958.2877     317.45     315.16     -1    -9.99   -0.99
  1958     5     1958.3699     317.51     314.69     -1    -9.99   -0.99
  1958     6     1958.4548     -99.99     315.15     -1    -9.99   -0.99
  1958     7     1958.5370     315.87     315.20     -1    -9.99   -0.99
  1958     8     1958.6219     314.93     316.21     -1    -9.99   -0.99
  1958     9     1958.7068     313.21     316.11     -1    -9.99   -0.99
  1958    10     1958.7890     -99.99     315.29     -1    -9.99   -0.99
  2024     1     2024.0417     422.80     422.03     27     0.63    0.23
"""


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point the data directory at a temp dir and never touch the network."""
    monkeypatch.setenv("CLIMATECAST_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CLIMATECAST_OFFLINE", "1")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def monthly_series() -> pd.Series:
    """Twenty years of trending, seasonal monthly data (CO2-like, strictly positive)."""
    index = pd.date_range("1990-01-01", periods=240, freq="MS")
    t = np.arange(240)
    rng = np.random.default_rng(0)
    values = 350 + 0.15 * t + 3 * np.sin(2 * np.pi * t / 12) + rng.normal(0, 0.3, 240)
    return pd.Series(values, index=index, name="co2_ppm")


@pytest.fixture
def linear_series() -> pd.Series:
    index = pd.date_range("2000-01-01", periods=60, freq="MS")
    return pd.Series(2.0 * np.arange(60) + 10.0, index=index)


@pytest.fixture
def gistemp_text() -> str:
    return GISTEMP_SAMPLE


@pytest.fixture
def co2_text() -> str:
    return CO2_SAMPLE
