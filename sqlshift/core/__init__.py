# Subpackages are imported explicitly (sqlshift.core.conversion,
# sqlshift.core.db, sqlshift.core.gateway) so that importing the data
# models does not pull in SQLAlchemy or LlamaIndex.
