"""Forecasting wrappers around statsmodels, pmdarima, Prophet, scikit-learn and XGBoost.

Every forecaster takes a training series on a regular DatetimeIndex and a
horizon, and returns a :class:`ForecastResult` indexed by the stamps that
follow the training data. The wrappers exist so that every chapter can swap
models behind one call signature; all of the statistics happen inside the
libraries.
"""
import logging
from dataclasses import dataclass, field
from functools import partial

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.compose import TransformedTargetRegressor
from sklearn.ensemble import RandomForestRegressor, VotingRegressor
from sklearn.neural_network import MLPRegressor
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler
from statsmodels.tsa.ar_model import ar_select_order
from statsmodels.tsa.arima.model import ARIMA
from statsmodels.tsa.exponential_smoothing.ets import ETSModel
from statsmodels.tsa.seasonal import STL

from climatecast.constants import SEASONAL_PERIOD
from climatecast.ts_helpers import future_index, infer_freq, lag_features, normalize_lags

logger = logging.getLogger(__name__)


@dataclass
class ForecastResult:
    """Point forecast plus optional prediction interval for one model."""
    model: str
    mean: pd.Series
    lower: pd.Series = None
    upper: pd.Series = None
    fitted: object = None
    info: dict = field(default_factory=dict)

    @property
    def has_interval(self):
        return self.lower is not None and self.upper is not None

    def to_frame(self):
        out = pd.DataFrame({"mean": self.mean})
        if self.has_interval:
            out["lower"] = self.lower
            out["upper"] = self.upper
        return out


def _z(alpha):
    return stats.norm.ppf(1 - alpha / 2)


def _result(name, index, mean, lower=None, upper=None, fitted=None, **info):
    mean = pd.Series(np.asarray(mean, dtype=float), index=index, name=name)
    if lower is not None:
        lower = pd.Series(np.asarray(lower, dtype=float), index=index, name=name)
        upper = pd.Series(np.asarray(upper, dtype=float), index=index, name=name)
    return ForecastResult(name, mean, lower, upper, fitted, info)


# ── Benchmarks ──────────────────────────────────────────────────────────────

def naive_forecast(train, horizon, alpha=0.05):
    """Repeat the last observation. Intervals widen with sqrt(h)."""
    index = future_index(train, horizon)
    sigma = train.diff().std()
    h = np.arange(1, horizon + 1)
    mean = np.full(horizon, train.iloc[-1])
    se = sigma * np.sqrt(h)
    return _result("Naive", index, mean, mean - _z(alpha) * se, mean + _z(alpha) * se,
                   sigma=sigma)


def seasonal_naive_forecast(train, horizon, m=SEASONAL_PERIOD, alpha=0.05):
    """Repeat the last observed season."""
    if len(train) < m:
        raise ValueError(f"seasonal naive needs at least {m} observations")
    index = future_index(train, horizon)
    last_season = train.iloc[-m:].to_numpy()
    h = np.arange(horizon)
    mean = last_season[h % m]
    sigma = train.diff(m).std()
    se = sigma * np.sqrt(h // m + 1)
    return _result("Seasonal naive", index, mean,
                   mean - _z(alpha) * se, mean + _z(alpha) * se, sigma=sigma)


def drift_forecast(train, horizon, alpha=0.05):
    """Extend the straight line joining the first and last observations."""
    n = len(train)
    if n < 2:
        raise ValueError("drift needs at least 2 observations")
    index = future_index(train, horizon)
    slope = (train.iloc[-1] - train.iloc[0]) / (n - 1)
    h = np.arange(1, horizon + 1)
    mean = train.iloc[-1] + slope * h
    sigma = (train.diff() - slope).std()
    se = sigma * np.sqrt(h * (1 + h / n))
    return _result("Drift", index, mean, mean - _z(alpha) * se, mean + _z(alpha) * se,
                   slope=slope, sigma=sigma)


# ── Statistical models ──────────────────────────────────────────────────────

def arima_forecast(train, horizon, order=(1, 1, 1), seasonal_order=None, trend=None,
                   alpha=0.05):
    """Fit a (seasonal) ARIMA with statsmodels and forecast `horizon` steps."""
    seasonal_order = seasonal_order or (0, 0, 0, 0)
    model = ARIMA(train, order=order, seasonal_order=seasonal_order, trend=trend)
    try:
        results = model.fit()
    except np.linalg.LinAlgError as e:
        raise ValueError(f"ARIMA{tuple(order)} could not be estimated: {e}") from e
    fc = results.get_forecast(steps=horizon)
    ci = fc.conf_int(alpha=alpha)
    label = f"ARIMA{tuple(order)}"
    if seasonal_order[3]:
        label += f"{tuple(seasonal_order[:3])}[{seasonal_order[3]}]"
    logger.info("Fitted ARIMA", extra={"model": label, "horizon": horizon})
    return _result("ARIMA", future_index(train, horizon), fc.predicted_mean,
                   ci.iloc[:, 0], ci.iloc[:, 1], fitted=results, label=label,
                   aic=results.aic, bic=results.bic)


def auto_arima_forecast(train, horizon, seasonal=True, m=SEASONAL_PERIOD, alpha=0.05,
                        max_p=3, max_q=3):
    """Stepwise AIC search over ARIMA orders using pmdarima."""
    import pmdarima as pm

    model = pm.auto_arima(
        train, start_p=0, start_q=0, max_p=max_p, max_q=max_q,
        seasonal=seasonal, m=m if seasonal else 1,
        stepwise=True, trace=False,
        error_action="ignore", suppress_warnings=True,
    )
    mean, ci = model.predict(n_periods=horizon, return_conf_int=True, alpha=alpha)
    ci = np.asarray(ci)
    label = f"ARIMA{model.order}"
    if seasonal and model.seasonal_order[3]:
        label += f"{model.seasonal_order[:3]}[{model.seasonal_order[3]}]"
    logger.info("auto_arima selected order", extra={"model": label, "horizon": horizon})
    return _result("auto ARIMA", future_index(train, horizon), np.asarray(mean),
                   ci[:, 0], ci[:, 1], fitted=model, label=label,
                   order=model.order, seasonal_order=model.seasonal_order, aic=model.aic())


def ets_forecast(train, horizon, error="add", trend="add", damped_trend=False,
                 seasonal=None, m=SEASONAL_PERIOD, alpha=0.05):
    """Fit an innovations state-space ETS model and forecast with analytic intervals."""
    model = ETSModel(
        train, error=error, trend=trend, damped_trend=damped_trend if trend else False,
        seasonal=seasonal, seasonal_periods=m if seasonal else None,
    )
    results = model.fit(disp=False)
    n = len(train)
    frame = results.get_prediction(start=n, end=n + horizon - 1).summary_frame(alpha=alpha)
    label = ets_label(error, trend, damped_trend, seasonal)
    logger.info("Fitted ETS", extra={"model": label, "horizon": horizon})
    return _result("ETS", future_index(train, horizon), frame["mean"],
                   frame["pi_lower"], frame["pi_upper"], fitted=results, label=label,
                   aic=results.aic, aicc=results.aicc, bic=results.bic)


def ets_label(error, trend, damped_trend, seasonal):
    """ETS(E,T,S) shorthand, e.g. ETS(A,Ad,N)."""
    def letter(component):
        return {"add": "A", "mul": "M", None: "N"}[component]

    t = letter(trend) + ("d" if trend and damped_trend else "")
    return f"ETS({letter(error)},{t},{letter(seasonal)})"


def ets_candidates(train, m=SEASONAL_PERIOD):
    """ETS configurations worth trying; multiplicative forms need positive data."""
    positive = bool((train > 0).all())
    errors = ["add", "mul"] if positive else ["add"]
    seasonals = [None]
    if len(train) >= 2 * m:
        seasonals += ["add", "mul"] if positive else ["add"]
    trends = [(None, False), ("add", False), ("add", True)]
    return [
        {"error": e, "trend": t, "damped_trend": d, "seasonal": s}
        for e in errors for t, d in trends for s in seasonals
    ]


def auto_ets_forecast(train, horizon, m=SEASONAL_PERIOD, alpha=0.05):
    """Try each ETS configuration and keep the one with the lowest AICc."""
    best, best_aicc, tried = None, np.inf, []
    for config in ets_candidates(train, m):
        try:
            results = ETSModel(
                train, error=config["error"], trend=config["trend"],
                damped_trend=config["damped_trend"], seasonal=config["seasonal"],
                seasonal_periods=m if config["seasonal"] else None,
            ).fit(disp=False)
        except (ValueError, np.linalg.LinAlgError) as exc:
            logger.debug("ETS candidate failed: %s", exc, extra={"model": ets_label(**config)})
            continue
        tried.append({"model": ets_label(**config), "aicc": results.aicc})
        if np.isfinite(results.aicc) and results.aicc < best_aicc:
            best, best_aicc = config, results.aicc
    if best is None:
        raise ValueError("No ETS configuration could be fitted to this series")
    result = ets_forecast(train, horizon, m=m, alpha=alpha, **best)
    result.info["candidates"] = pd.DataFrame(tried).sort_values("aicc").reset_index(drop=True)
    return result


def prophet_forecast(train, horizon, yearly_seasonality=True,
                     changepoint_prior_scale=0.05, seasonality_mode="additive",
                     alpha=0.05):
    """Fit Prophet on a ds/y frame built from the training series."""
    from prophet import Prophet

    freq = infer_freq(train)
    frame = pd.DataFrame({"ds": train.index, "y": train.to_numpy()})
    model = Prophet(
        yearly_seasonality=yearly_seasonality,
        weekly_seasonality=False,
        daily_seasonality=False,
        changepoint_prior_scale=changepoint_prior_scale,
        seasonality_mode=seasonality_mode,
        interval_width=1 - alpha,
    )
    model.fit(frame)
    future = model.make_future_dataframe(periods=horizon, freq=freq, include_history=False)
    forecast = model.predict(future)
    logger.info("Fitted Prophet", extra={"model": "Prophet", "horizon": horizon})
    return _result("Prophet", future_index(train, horizon), forecast["yhat"],
                   forecast["yhat_lower"], forecast["yhat_upper"], fitted=model,
                   components=forecast)


# ── Lag-regression models ───────────────────────────────────────────────────

def _feature_rows(paths, lags, month):
    data = {f"lag_{lag}": paths[:, -lag] for lag in lags}
    if month is not None:
        data["month"] = np.full(paths.shape[0], month)
    return pd.DataFrame(data)


def recursive_predict(regressor, history, lags, horizon, months=None, noise=None):
    """Roll a one-step regressor forward, feeding each prediction back as a lag.

    `history` is a 2-D array of shape (n_paths, t); every path is advanced in
    a single `predict` call per step. `noise`, when given, is added to the
    step-ahead predictions (shape (n_paths, horizon)) before they are fed back.
    """
    paths = np.array(history, dtype=float, ndmin=2)
    out = np.empty((paths.shape[0], horizon))
    for step in range(horizon):
        month = None if months is None else months[step]
        pred = np.asarray(regressor.predict(_feature_rows(paths, lags, month)), dtype=float)
        if noise is not None:
            pred = pred + noise[:, step]
        out[:, step] = pred
        paths = np.column_stack([paths, pred])
    return out


def lag_regression_forecast(train, horizon, regressor, lags=12, name="Regressor",
                            calendar=False, difference=False, n_paths=0, alpha=0.05,
                            seed=42, label=None):
    """Fit any scikit-learn style regressor on lag features and forecast recursively.

    With `difference` the model learns month-to-month changes which are
    summed back onto the last observation, letting tree models follow a
    trend they could never extrapolate from levels. When `n_paths` is
    positive, prediction intervals come from simulating that many future
    paths with bootstrapped in-sample residuals.
    """
    lags = normalize_lags(lags)
    target = train.diff().dropna() if difference else train
    X, y = lag_features(target, lags, calendar=calendar)
    if len(X) < 2 * len(lags):
        raise ValueError(
            f"{len(X)} training rows is too few for {len(lags)} lag features"
        )
    regressor.fit(X, y)

    index = future_index(train, horizon)
    months = list(index.month) if calendar else None
    history = target.to_numpy()[np.newaxis, :]
    steps = recursive_predict(regressor, history, lags, horizon, months)

    def to_levels(values):
        return train.iloc[-1] + np.cumsum(values, axis=1) if difference else values

    mean = to_levels(steps)[0]
    lower = upper = None
    if n_paths:
        resid = y.to_numpy() - np.asarray(regressor.predict(X), dtype=float)
        rng = np.random.default_rng(seed)
        noise = rng.choice(resid, size=(n_paths, horizon), replace=True)
        sims = to_levels(recursive_predict(
            regressor, np.repeat(history, n_paths, axis=0), lags, horizon, months, noise,
        ))
        lower, upper = np.quantile(sims, [alpha / 2, 1 - alpha / 2], axis=0)

    logger.info("Fitted lag regressor", extra={"model": label or name, "horizon": horizon})
    return _result(name, index, mean, lower, upper, fitted=regressor,
                   label=label or name, lags=lags, difference=difference,
                   features=list(X.columns))


def random_forest_forecast(train, horizon, lags=12, n_estimators=300, max_depth=None,
                           difference=True, n_paths=0, alpha=0.05, seed=42):
    rf = RandomForestRegressor(
        n_estimators=n_estimators, max_depth=max_depth, random_state=seed, n_jobs=-1,
    )
    return lag_regression_forecast(
        train, horizon, rf, lags=lags, name="Random Forest", calendar=True,
        difference=difference, n_paths=n_paths, alpha=alpha, seed=seed,
    )


def xgboost_forecast(train, horizon, lags=12, n_estimators=300, learning_rate=0.05,
                     max_depth=3, difference=True, n_paths=0, alpha=0.05, seed=42):
    from xgboost import XGBRegressor

    xgb = XGBRegressor(
        n_estimators=n_estimators, learning_rate=learning_rate, max_depth=max_depth,
        random_state=seed, n_jobs=-1,
    )
    return lag_regression_forecast(
        train, horizon, xgb, lags=lags, name="XGBoost", calendar=True,
        difference=difference, n_paths=n_paths, alpha=alpha, seed=seed,
    )


def select_ar_order(train, m=SEASONAL_PERIOD, max_lag=None):
    """AIC-best AR order of the seasonally adjusted series (at least 1)."""
    values = train
    if m > 1 and len(train) >= 2 * m:
        values = train - STL(train, period=m, robust=True).fit().seasonal
    max_lag = max_lag or min(max(m, 4), len(train) // 4)
    selection = ar_select_order(values.to_numpy(), maxlag=max_lag, ic="aic")
    ar_lags = selection.ar_lags
    return int(max(ar_lags)) if ar_lags else 1


def nnar_regressor(size, repeats=20, max_iter=2000, seed=42):
    """Average of `repeats` single-hidden-layer networks on scaled inputs and target."""
    nets = [
        (f"net_{i}", MLPRegressor(
            hidden_layer_sizes=(size,), activation="logistic", solver="lbfgs",
            alpha=1e-3, max_iter=max_iter, random_state=seed + i,
        ))
        for i in range(repeats)
    ]
    return TransformedTargetRegressor(
        regressor=make_pipeline(StandardScaler(), VotingRegressor(nets)),
        transformer=StandardScaler(),
    )


def nnar_forecast(train, horizon, p=None, P=1, size=None, m=SEASONAL_PERIOD,
                  repeats=20, n_paths=0, alpha=0.05, seed=42):
    """Neural network autoregression NNAR(p,P,k)[m].

    Inputs are lags 1..p plus the seasonal lags m, 2m, ..., Pm; the hidden
    layer has k = round((p + P + 1) / 2) nodes unless `size` is given.
    """
    if p is None:
        p = select_ar_order(train, m)
    seasonal_lags = [m * k for k in range(1, P + 1)] if m > 1 else []
    lags = sorted(set(range(1, p + 1)) | set(seasonal_lags))
    P = len(seasonal_lags)
    if size is None:
        size = max(1, int(round((p + P + 1) / 2)))
    label = f"NNAR({p},{P},{size})[{m}]" if P else f"NNAR({p},{size})"
    result = lag_regression_forecast(
        train, horizon, nnar_regressor(size, repeats, seed=seed), lags=lags,
        name="NNAR", n_paths=n_paths, alpha=alpha, seed=seed, label=label,
    )
    result.info.update(p=p, P=P, size=size)
    return result


MODEL_REGISTRY = {
    "Naive": naive_forecast,
    "Seasonal naive": seasonal_naive_forecast,
    "Drift": drift_forecast,
    "ARIMA": partial(arima_forecast, order=(1, 1, 1), seasonal_order=(0, 1, 1, SEASONAL_PERIOD)),
    "ETS": auto_ets_forecast,
    "Prophet": prophet_forecast,
    "Random Forest": random_forest_forecast,
    "XGBoost": xgboost_forecast,
    "NNAR": partial(nnar_forecast, repeats=10),
}
