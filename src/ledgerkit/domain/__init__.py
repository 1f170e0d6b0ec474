"""Domain layer for ledgerkit application.

Services are imported from their modules directly; ``ledgerkit.database``
depends on ``ledgerkit.domain.entities``, so this package stays free of
service imports.
"""
