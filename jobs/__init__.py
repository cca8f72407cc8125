"""Jobs de mantenimiento ejecutables con ``python -m jobs.<nombre>``."""
