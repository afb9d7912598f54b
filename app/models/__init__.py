from app.models.records import CustomerModel, DeclarationModel  # noqa: F401
