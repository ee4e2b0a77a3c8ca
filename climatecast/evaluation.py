"""Forecast accuracy, rolling-origin cross-validation and forecast combination."""
import logging

import numpy as np
import pandas as pd
from sklearn.metrics import (
    mean_absolute_error, mean_absolute_percentage_error, mean_squared_error,
)
from sklearn.model_selection import TimeSeriesSplit

from climatecast.forecasters import ForecastResult
from climatecast.ts_helpers import holdout_split

logger = logging.getLogger(__name__)


def _aligned(actual, predicted):
    if isinstance(actual, pd.Series) and isinstance(predicted, pd.Series):
        actual, predicted = actual.align(predicted, join="inner")
        if actual.empty:
            raise ValueError("actual and predicted share no time stamps")
        return actual.to_numpy(dtype=float), predicted.to_numpy(dtype=float)
    actual = np.asarray(actual, dtype=float)
    predicted = np.asarray(predicted, dtype=float)
    n = min(len(actual), len(predicted))
    return actual[:n], predicted[:n]


def mase_scale(train, seasonal_period=1):
    """In-sample mean absolute error of the (seasonal) naive method."""
    values = np.asarray(train, dtype=float)
    if len(values) <= seasonal_period:
        raise ValueError("training series is shorter than the seasonal period")
    return np.mean(np.abs(values[seasonal_period:] - values[:-seasonal_period]))


def accuracy(actual, predicted, train=None, seasonal_period=1):
    """ME, RMSE, MAE, MPE, MAPE and (with `train`) MASE for one forecast."""
    y, yhat = _aligned(actual, predicted)
    errors = y - yhat
    mae = mean_absolute_error(y, yhat)
    metrics = {
        "ME": float(np.mean(errors)),
        "RMSE": float(np.sqrt(mean_squared_error(y, yhat))),
        "MAE": float(mae),
        "MPE": float(np.mean(errors / y) * 100),
        "MAPE": float(mean_absolute_percentage_error(y, yhat) * 100),
    }
    if train is not None:
        metrics["MASE"] = float(mae / mase_scale(train, seasonal_period))
    return metrics


def interval_coverage(actual, lower, upper):
    """Share of actual values that fall inside the prediction interval."""
    y, lo = _aligned(actual, lower)
    _, hi = _aligned(actual, upper)
    return float(np.mean((y >= lo) & (y <= hi)))


def compare_models(actual, results, train=None, seasonal_period=1):
    """One accuracy row per forecast, best RMSE first."""
    rows = []
    for result in results:
        row = {"Model": result.info.get("label", result.model)}
        row.update(accuracy(actual, result.mean, train, seasonal_period))
        if result.has_interval:
            row["Coverage"] = interval_coverage(actual, result.lower, result.upper)
        rows.append(row)
    return pd.DataFrame(rows).sort_values("RMSE").reset_index(drop=True)


def cv_splits(series, horizon, n_splits=5, max_train_size=None):
    """(train, test) slices for rolling-origin evaluation.

    scikit-learn's TimeSeriesSplit supplies the positions; each test block
    holds exactly `horizon` observations and the last one ends at the final
    observation. Positions are turned into contiguous slices so the
    index keeps its frequency.
    """
    splitter = TimeSeriesSplit(n_splits=n_splits, test_size=horizon,
                               max_train_size=max_train_size)
    for train_idx, test_idx in splitter.split(series):
        yield (
            series.iloc[train_idx[0]:train_idx[-1] + 1],
            series.iloc[test_idx[0]:test_idx[-1] + 1],
        )


def time_series_cv(series, forecast_fn, horizon, n_splits=5, max_train_size=None):
    """Evaluate `forecast_fn(train, horizon)` from several forecast origins.

    Returns one row per fold and forecast step with the actual value, the
    forecast and the error (actual minus forecast).
    """
    rows = []
    for fold, (train, test) in enumerate(cv_splits(series, horizon, n_splits, max_train_size), 1):
        logger.info("Cross-validation fold", extra={"fold": fold, "horizon": horizon, "rows": len(train)})
        result = forecast_fn(train, horizon)
        predicted = result.mean.reindex(test.index)
        for step, (stamp, actual, pred) in enumerate(zip(test.index, test.to_numpy(), predicted.to_numpy()), 1):
            rows.append({
                "fold": fold,
                "origin": train.index[-1],
                "step": step,
                "date": stamp,
                "actual": actual,
                "forecast": pred,
                "error": actual - pred,
            })
    return pd.DataFrame(rows)


def cv_summary(errors):
    """RMSE and MAE by forecast step, plus an overall row."""
    def summarize(group):
        return pd.Series({
            "RMSE": float(np.sqrt(np.mean(group["error"] ** 2))),
            "MAE": float(np.mean(np.abs(group["error"]))),
            "n": int(len(group)),
        })

    by_step = errors.groupby("step")[["error"]].apply(summarize)
    overall = summarize(errors).to_frame().T
    overall.index = ["all"]
    return pd.concat([by_step, overall])


def validation_splits(series, horizon, n_splits=1, max_train_size=None):
    """Rolling-origin folds that all end before the final `horizon` test block.

    Scores from these folds can weight or tune models that are then judged
    on `holdout_split(series, horizon)` without touching its test months.
    """
    history, _ = holdout_split(series, horizon)
    if n_splits == 1:
        # TimeSeriesSplit needs at least two folds
        train, test = holdout_split(history, horizon)
        if max_train_size:
            train = train.iloc[-max_train_size:]
        return iter([(train, test)])
    return cv_splits(history, horizon, n_splits, max_train_size)


def cv_weight_record(dataset, series, horizon, errors_by_model):
    """Summarise validation errors so a later forecast can reuse them as weights."""
    last_used = max(errors["date"].max() for errors in errors_by_model.values())
    return {
        "dataset": dataset,
        "horizon": horizon,
        "start": series.index[0],
        "end": series.index[-1],
        "last_used": last_used,
        "scores": {name: float(cv_summary(errors).loc["all", "RMSE"])
                   for name, errors in errors_by_model.items()},
    }


def cv_weight_scores(record, dataset, series, horizon):
    """Stored RMSE scores if they fit a holdout test on `series`, else None.

    The record must come from the same dataset, horizon and year window, and
    none of its folds may reach into the final `horizon` months.
    """
    if not record:
        return None
    if record["dataset"] != dataset or record["horizon"] != horizon:
        return None
    if (record["start"], record["end"]) != (series.index[0], series.index[-1]):
        return None
    if record["last_used"] >= series.index[-horizon]:
        logger.warning("Stored scores overlap the test block; ignoring them",
                       extra={"dataset": dataset, "horizon": horizon})
        return None
    return dict(record["scores"])


def inverse_rmse_weights(scores):
    """Normalised 1/RMSE weights from a {model: rmse} mapping."""
    inv = {name: 1.0 / rmse for name, rmse in scores.items() if rmse > 0}
    if not inv:
        raise ValueError("need at least one positive RMSE")
    total = sum(inv.values())
    return {name: value / total for name, value in inv.items()}


def ensemble_forecast(results, weights=None, name="Ensemble"):
    """Combine point forecasts by (weighted) averaging.

    `weights` maps model names to weights and is normalised over the models
    present; models missing from the mapping get zero weight.
    """
    if not results:
        raise ValueError("nothing to combine")
    means = pd.concat([r.mean.rename(r.model) for r in results], axis=1, join="inner")
    if weights is None:
        w = np.full(means.shape[1], 1.0 / means.shape[1])
    else:
        w = np.array([weights.get(col, 0.0) for col in means.columns], dtype=float)
        if w.sum() <= 0:
            raise ValueError("ensemble weights sum to zero")
        w = w / w.sum()
    combined = means.to_numpy() @ w
    return ForecastResult(
        name, pd.Series(combined, index=means.index, name=name),
        info={"label": name, "members": list(means.columns),
              "weights": dict(zip(means.columns, w))},
    )
