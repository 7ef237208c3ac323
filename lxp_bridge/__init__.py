"""Configuration, channels, commands, Home Assistant discovery, InfluxDB and SQL storage for LuxPower inverters."""

__version__ = "0.1.0"