import pandas as pd
from pathlib import Path

_DELIMITERS = {".csv": ",", ".tsv": "\t", ".txt": "\t"}


def delimiter_for(path: Path, default: str = ",") -> str:
    """Pick a field delimiter from the file extension."""
    return _DELIMITERS.get(Path(path).suffix.lower(), default)


def save_dataframe(df: pd.DataFrame, path: Path, *, index: bool = False, delimiter: str = None) -> Path:
    """
    Save a DataFrame as a delimited text table (comma for .csv, tab for .tsv/.txt).
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    sep = delimiter or delimiter_for(path)
    df.to_csv(path, sep=sep, index=index)
    return path


def read_dataframe(path: Path, *, delimiter: str = None, header=0, index_col=None) -> pd.DataFrame:
    """
    Load a delimited table. The delimiter is inferred from the extension unless given.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if delimiter is None and suffix not in _DELIMITERS:
        raise ValueError(f"Unsupported file extension for reading: {suffix}")

    sep = delimiter or delimiter_for(path)
    return pd.read_csv(path, sep=sep, header=header, index_col=index_col)
