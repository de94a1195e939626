"""blog-sync: keep the Airtable and Google Sheets blog catalogs in step."""

__version__ = "0.4.0"
