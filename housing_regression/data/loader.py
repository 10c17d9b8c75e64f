"""Data loading module for the housing-price regression study."""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)

_EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


class DataIngestor:
    """Handles validated data loading from local CSV or Excel files.

    Args:
        file_path: Path to the data file. Falls back to DATA_PATH env var
            or 'data/ames.csv' if not provided.
    """

    def __init__(self, file_path: Optional[Union[str, Path]] = None) -> None:
        self.file_path = Path(
            file_path or os.getenv("DATA_PATH", "data/ames.csv")
        )

    def load(self, sheet_name: Union[str, int] = 0) -> pd.DataFrame:
        """Load the data file into a DataFrame with validation.

        The reader is chosen from the file suffix: Excel workbooks go through
        ``openpyxl``, everything else is parsed as CSV.

        Args:
            sheet_name: Sheet index or name to load (Excel only).

        Returns:
            Loaded DataFrame.

        Raises:
            FileNotFoundError: If the file path does not exist.
            ValueError: If the loaded DataFrame is empty.
        """
        logger.info("Attempting to load data from: %s", self.file_path)

        if not self.file_path.exists():
            msg = f"File not found: {self.file_path}"
            logger.error(msg)
            raise FileNotFoundError(msg)

        try:
            if self.file_path.suffix.lower() in _EXCEL_SUFFIXES:
                df = pd.read_excel(
                    self.file_path, sheet_name=sheet_name, engine="openpyxl"
                )
            else:
                df = pd.read_csv(self.file_path)
        except pd.errors.EmptyDataError:
            df = pd.DataFrame()
        except Exception as exc:
            logger.error("Failed to read %s: %s", self.file_path, exc)
            raise

        if df.empty:
            raise ValueError(f"Loaded DataFrame from '{self.file_path}' is empty.")

        logger.info("Successfully loaded %d rows and %d columns.", *df.shape)
        return df
