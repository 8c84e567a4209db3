"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
"""
from typing import Optional


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: float) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.5K, 3.2M).
        Bytes are printed without decimals, larger units with one.
        """
        if size_bytes <= 0:
            return "0B"

        if size_bytes < 1024:
            return f"{int(size_bytes)}B"

        value = float(size_bytes)
        for unit in ["B", "K", "M", "G", "T", "P"]:
            if value < 1024:
                return f"{value:.1f}{unit}"
            value /= 1024
        return f"{value:.1f}E"

    @staticmethod
    def rate_to_human(bytes_per_second: float) -> str:
        """Throughput as human-readable size per second (e.g., 12.0M/s)."""
        return f"{ConvertUtils.bytes_to_human(bytes_per_second)}/s"

    @staticmethod
    def percent_to_human(percent: Optional[float]) -> str:
        """Two-decimal percentage, or '-' when the value is unavailable."""
        if percent is None:
            return "-"
        return f"{percent:.2f}%"

