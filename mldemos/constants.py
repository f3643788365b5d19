# mldemos/constants.py

# ---------------------------------------------------------------------
# Passenger survival schema
# ---------------------------------------------------------------------
SURVIVAL_TARGET = "Survived"
SURVIVAL_ID = "PassengerId"
SURVIVAL_NUMERIC = ["Age", "Fare", "SibSp", "Parch"]
SURVIVAL_CATEGORICAL = ["Pclass", "Sex", "Embarked"]

# Fixed category orders for one-hot encoding
PCLASS_CATEGORIES = [1, 2, 3]
SEX_CATEGORIES = ["male", "female"]
EMBARKED_CATEGORIES = ["C", "Q", "S"]

# ---------------------------------------------------------------------
# Stock direction schema
# ---------------------------------------------------------------------
STOCK_ENTITY = "Symbol"
STOCK_DATE = "Date"
STOCK_PRICE_COLS = ["Open", "High", "Low", "Close", "Volume"]
STOCK_REQUIRED = [STOCK_ENTITY, STOCK_DATE] + STOCK_PRICE_COLS
STOCK_INDICATOR_COLS = ["SMA", "RSI", "VolumeSMA"]
STOCK_FEATURES = STOCK_PRICE_COLS + STOCK_INDICATOR_COLS

# Direction classes (index == class id)
DIRECTION_CLASSES = ["Down", "Neutral", "Up"]

# ---------------------------------------------------------------------
# Store sales schema
# ---------------------------------------------------------------------
SALES_ENTITY = "Store"
SALES_DATE = "Date"
SALES_TARGET = "Weekly_Sales"
SALES_FEATURES = [
    "Weekly_Sales",
    "Holiday_Flag",
    "Temperature",
    "Fuel_Price",
    "CPI",
    "Unemployment",
]
SALES_REQUIRED = [SALES_ENTITY, SALES_DATE] + SALES_FEATURES
SALES_DATE_FORMAT = "%d-%m-%Y"
