from __future__ import annotations

import io

import numpy as np
import pandas as pd
import pytest

import climatecast.data_loader as data_loader
from climatecast.data_loader import (
    DataFormatError,
    DataUnavailableError,
    dataset_path,
    download_dataset,
    ensure_dataset,
    load_co2,
    load_series,
    load_temperature,
    parse_co2_monthly,
    parse_gistemp,
)


class StubResponse:
    def __init__(self, text: str, status: int = 200) -> None:
        self.text = text
        self.content = text.encode()
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise data_loader.requests.HTTPError(f"status {self.status}")


@pytest.fixture
def clear_loaders():
    load_temperature.clear()
    load_co2.clear()
    yield
    load_temperature.clear()
    load_co2.clear()


def test_parse_gistemp_melts_to_monthly_series(gistemp_text) -> None:
    series = parse_gistemp(io.StringIO(gistemp_text))

    assert series.name == "anomaly_c"
    assert series.index.freqstr == "MS"
    assert series.index[0] == pd.Timestamp("1880-01-01")
    # trailing *** months of the unfinished year are dropped, not interpolated
    assert series.index[-1] == pd.Timestamp("1883-03-01")
    assert len(series) == 39
    assert series["1880-02-01"] == pytest.approx(-0.24)
    assert series["1883-03-01"] == pytest.approx(-0.12)


def test_parse_gistemp_interpolates_interior_missing_month(gistemp_text) -> None:
    series = parse_gistemp(io.StringIO(gistemp_text))

    assert series["1881-03-01"] == pytest.approx((-0.14 + 0.05) / 2)
    assert not series.isna().any()


def test_parse_gistemp_rejects_missing_columns() -> None:
    text = "Title\nYear,Jan,Feb\n1880,-.1,-.2\n"

    with pytest.raises(DataFormatError, match="Mar"):
        parse_gistemp(io.StringIO(text))


def test_parse_gistemp_rejects_table_without_values() -> None:
    header = "Year," + ",".join(
        ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]
    )
    text = "Title\n" + header + "\n1880" + ",***" * 12 + "\n"

    with pytest.raises(DataFormatError):
        parse_gistemp(io.StringIO(text))


def test_data_format_error_is_a_value_error() -> None:
    assert issubclass(DataFormatError, ValueError)


def test_parse_co2_monthly_masks_sentinels(co2_text) -> None:
    frame = parse_co2_monthly(io.StringIO(co2_text))

    assert list(frame.columns) == ["co2_ppm", "deseasonalized_ppm", "n_days"]
    assert frame.index.freqstr == "MS"
    assert frame.index[0] == pd.Timestamp("1958-03-01")
    assert frame.index[-1] == pd.Timestamp("2024-01-01")
    assert frame.loc["1958-03-01", "co2_ppm"] == pytest.approx(315.71)
    assert np.isnan(frame.loc["1958-06-01", "co2_ppm"])
    assert frame.loc["1958-06-01", "deseasonalized_ppm"] == pytest.approx(315.15)
    assert np.isnan(frame.loc["1958-03-01", "n_days"])
    assert frame.loc["2024-01-01", "n_days"] == 27


def test_parse_co2_monthly_rejects_narrow_file() -> None:
    with pytest.raises(DataFormatError):
        parse_co2_monthly(io.StringIO("# header\n1958 3 1958.2\n1958 4 1958.3\n"))


def test_dataset_path_uses_configured_data_dir(tmp_path) -> None:
    assert dataset_path("co2") == tmp_path / "data" / "co2_mm_mlo.txt"


def test_ensure_dataset_offline_without_file_raises() -> None:
    with pytest.raises(DataUnavailableError, match="CLIMATECAST_OFFLINE"):
        ensure_dataset("temperature")


def test_ensure_dataset_returns_existing_file(gistemp_text) -> None:
    path = dataset_path("temperature")
    path.parent.mkdir(parents=True)
    path.write_text(gistemp_text)

    assert ensure_dataset("temperature") == path


def test_download_dataset_writes_response(monkeypatch, tmp_path, co2_text) -> None:
    calls = []

    def fake_get(url, timeout, headers):
        calls.append((url, timeout, headers))
        return StubResponse(co2_text)

    monkeypatch.setattr(data_loader.requests, "get", fake_get)
    dest = tmp_path / "nested" / "co2.txt"

    written = download_dataset("co2", dest, timeout=5)

    assert written == dest
    assert dest.read_text() == co2_text
    url, timeout, headers = calls[0]
    assert url.endswith("co2_mm_mlo.txt")
    assert timeout == 5
    assert "User-Agent" in headers


def test_download_dataset_propagates_http_errors(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(data_loader.requests, "get",
                        lambda url, timeout, headers: StubResponse("gone", status=404))

    with pytest.raises(data_loader.requests.HTTPError):
        download_dataset("temperature", tmp_path / "t.csv")
    assert not (tmp_path / "t.csv").exists()


def test_ensure_dataset_downloads_when_online(monkeypatch, gistemp_text) -> None:
    monkeypatch.setenv("CLIMATECAST_OFFLINE", "0")
    data_loader.get_settings.cache_clear()
    monkeypatch.setattr(data_loader.requests, "get",
                        lambda url, timeout, headers: StubResponse(gistemp_text))

    path = ensure_dataset("temperature")

    assert path.read_text() == gistemp_text


def test_load_series_reads_local_files(clear_loaders, gistemp_text, co2_text) -> None:
    for key, text in (("temperature", gistemp_text), ("co2", co2_text)):
        path = dataset_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    temperature = load_series("temperature")
    co2 = load_series("co2")

    assert len(temperature) == 39
    assert co2.name == "co2_ppm"
    assert co2["1958-06-01"] == pytest.approx((317.51 + 315.87) / 2)
    assert not co2.isna().any()
    assert co2.index[0] == pd.Timestamp("1958-03-01")


def test_load_series_unknown_key() -> None:
    with pytest.raises(KeyError):
        load_series("sea_level")
