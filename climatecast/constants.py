"""Shared constants: datasets, colors, labels, course outline."""

GISTEMP_URL = "https://data.giss.nasa.gov/gistemp/tabledata_v4/GLB.Ts+dSST.csv"
CO2_URL = "https://gml.noaa.gov/webdata/ccgg/trends/co2/co2_mm_mlo.txt"

DATASETS = {
    "temperature": {
        "label": "Global Temperature Anomaly",
        "url": GISTEMP_URL,
        "filename": "GLB.Ts+dSST.csv",
        "units": "°C",
        "axis_label": "Anomaly vs 1951-1980 (°C)",
        "source": "NASA GISS Surface Temperature Analysis (GISTEMP v4)",
    },
    "co2": {
        "label": "Mauna Loa CO2",
        "url": CO2_URL,
        "filename": "co2_mm_mlo.txt",
        "units": "ppm",
        "axis_label": "CO2 concentration (ppm)",
        "source": "NOAA Global Monitoring Laboratory, Mauna Loa Observatory",
    },
}

DATASET_KEYS = list(DATASETS.keys())

SEASONAL_PERIOD = 12

MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


CO2_COLUMNS = [
    "year", "month", "decimal_date", "co2_ppm",
    "deseasonalized_ppm", "n_days", "day_std", "mean_unc",
]

MODEL_COLORS = {
    "Naive": "#8D99AE",
    "Seasonal naive": "#ADB5BD",
    "Drift": "#6C757D",
    "ARIMA": "#E63946",
    "auto ARIMA": "#7209B7",
    "ETS": "#2A9D8F",
    "Prophet": "#F4A261",
    "Random Forest": "#264653",
    "XGBoost": "#FB8500",
    "NNAR": "#3A86FF",
    "Ensemble": "#000000",
}

TRAIN_COLOR = "#264653"
ACTUAL_COLOR = "#2A9D8F"
FALLBACK_COLOR = "#2E86C1"

PART_TITLES = {
    "I": "Exploring Climate Data",
    "II": "Statistical Forecasting",
    "III": "Machine Learning Forecasting",
    "IV": "Evaluation & Ensembles",
}
