"""Job marketplace payments: balances, job payment and deposits."""

__version__ = "0.1.0"
