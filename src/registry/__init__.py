"""Registry clients: CRAN metadata and Bioconductor repository discovery."""
