"""
What the collectors fetch.

``FRED_SERIES`` maps a FRED series ID to the number of prints requested:
enough for the derivation that consumes it (52 weekly prints for the Fed
balance sheet YoY, 13 monthly prints for the other YoY series).
"""

from __future__ import annotations

from dataclasses import dataclass

FRED_SERIES: dict[str, int] = {
    "GDP":             5,    # nominal GDP, billions (quarterly)
    "NCBCEL":          5,    # nonfinancial corporate equities, millions (quarterly)
    "WALCL":           60,   # Fed total assets (weekly)
    "M2SL":            15,   # M2 money stock (monthly)
    "BAMLH0A0HYM2":    5,    # ICE BofA US high-yield OAS
    "DGS10":           5,    # 10Y treasury
    "DGS2":            5,    # 2Y treasury
    "DGS3MO":          5,    # 3M treasury
    "ICSA":            5,    # initial claims (weekly)
    "A191RL1Q225SBEA": 5,    # real GDP growth, annualised QoQ
    "MANEMP":          5,    # manufacturing employment
    "NMFBAI":          5,    # ISM services business activity
    "RSXFS":           15,   # retail sales ex food services
    "CPIAUCSL":        15,   # CPI
    "CPILFESL":        15,   # core CPI
    "PCEPI":           15,   # PCE price index
    "PCEPILFE":        15,   # core PCE
    "PPIACO":          15,   # PPI all commodities
    "PAYEMS":          3,    # nonfarm payrolls, thousands
    "UNRATE":          5,    # unemployment rate
    "CIVPART":         5,    # labour force participation
}

YAHOO_SYMBOLS: tuple[str, ...] = (
    "^VIX", "SPY", "QQQ", "SGOV", "GLD", "SCHD", "VYM", "DX-Y.NYB",
)


@dataclass(frozen=True)
class GlobalIndex:
    symbol: str
    name: str
    region: str


GLOBAL_INDICES: tuple[GlobalIndex, ...] = (
    # 미국
    GlobalIndex("^GSPC",     "S&P 500",       "미국"),
    GlobalIndex("^IXIC",     "NASDAQ",        "미국"),
    GlobalIndex("^DJI",      "Dow Jones",     "미국"),
    GlobalIndex("^RUT",      "Russell 2000",  "미국"),
    # 유럽
    GlobalIndex("^FTSE",     "FTSE 100",      "유럽"),
    GlobalIndex("^GDAXI",    "DAX",           "유럽"),
    GlobalIndex("^FCHI",     "CAC 40",        "유럽"),
    GlobalIndex("^STOXX50E", "EURO STOXX 50", "유럽"),
    # 아시아
    GlobalIndex("^KS11",     "KOSPI",         "아시아"),
    GlobalIndex("^N225",     "Nikkei 225",    "아시아"),
    GlobalIndex("^HSI",      "Hang Seng",     "아시아"),
    GlobalIndex("000001.SS", "SSE Composite", "아시아"),
    # 기타
    GlobalIndex("^AXJO",     "ASX 200",       "기타"),
    GlobalIndex("^BVSP",     "Bovespa",       "기타"),
    GlobalIndex("^GSPTSE",   "S&P/TSX",       "기타"),
    GlobalIndex("^MXX",      "IPC Mexico",    "기타"),
)

GLOBAL_REGIONS: tuple[str, ...] = ("미국", "유럽", "아시아", "기타")
