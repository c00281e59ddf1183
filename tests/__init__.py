"""
Asset catalog test suite

Structure:
- unit/: tests for the scanner, geometry helpers, hierarchy builder, store,
  metadata blob, rasterizer adapter and configuration
- integration/: AssetCatalog end to end over real files
- fixtures/: SVG documents used by the integration tests
"""
