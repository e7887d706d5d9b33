"""Web fuzzing building blocks: inputs, HTTP runner, matchers, filters, scrapers and reports."""

__version__ = "0.1.0"