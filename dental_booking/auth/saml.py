from urllib.parse import urlparse

from dental_booking.core import config
from dental_booking.core.errors import ValidationError
from dental_booking.services.identity import Principal

EMAIL_ATTRIBUTES = ("email", "Email", "mail")
FIRST_NAME_ATTRIBUTES = ("FirstName", "firstName", "givenName")
LAST_NAME_ATTRIBUTES = ("LastName", "lastName", "sn")


def build_saml_settings() -> dict:
    base_settings = {
        "strict": config.SAML_STRICT,
        "debug": config.SAML_DEBUG,
        "sp": {
            "entityId": config.SAML_SP_ENTITY_ID,
            "assertionConsumerService": {
                "url": config.SAML_SP_ACS_URL,
                "binding": "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-POST",
            },
            "singleLogoutService": {
                "url": config.SAML_SP_SLO_URL,
                "binding": "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect",
            },
            "x509cert": config.SAML_SP_X509CERT,
            "privateKey": config.SAML_SP_PRIVATE_KEY,
            "NameIDFormat": config.SAML_SP_NAMEID_FORMAT,
        },
        "idp": {
            "entityId": config.SAML_IDP_ENTITY_ID,
            "singleSignOnService": {
                "url": config.SAML_IDP_SSO_URL,
                "binding": "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect",
            },
            "singleLogoutService": {
                "url": config.SAML_IDP_SLO_URL,
                "binding": "urn:oasis:names:tc:SAML:2.0:bindings:HTTP-Redirect",
            },
            "x509cert": config.SAML_IDP_X509CERT,
        },
    }
    if config.SAML_IDP_METADATA_PATH:
        # python3-saml needs xmlsec; it is imported only when SSO is actually used.
        from onelogin.saml2.idp_metadata_parser import OneLogin_Saml2_IdPMetadataParser

        with open(config.SAML_IDP_METADATA_PATH, encoding="utf-8") as metadata_file:
            idp_data = OneLogin_Saml2_IdPMetadataParser.parse(metadata_file.read())
        return OneLogin_Saml2_IdPMetadataParser.merge_settings(base_settings, idp_data)
    return base_settings


def init_saml_auth(request_data: dict):
    from onelogin.saml2.auth import OneLogin_Saml2_Auth

    return OneLogin_Saml2_Auth(request_data, build_saml_settings())


def build_request_data(url: str, host: str, query_params: dict, form_data: dict) -> dict:
    parsed = urlparse(url)
    scheme = "https" if parsed.scheme == "https" else "http"
    default_port = 443 if scheme == "https" else 80
    return {
        "https": "on" if scheme == "https" else "off",
        "http_host": host,
        "server_port": str(parsed.port or default_port),
        "script_name": parsed.path,
        "get_data": query_params,
        "post_data": form_data,
    }


def _first_attribute(attributes: dict, names: tuple[str, ...]) -> str | None:
    for name in names:
        values = attributes.get(name) or []
        if values:
            return values[0]
    return None


def extract_principal(auth) -> Principal:
    """Build a Principal from an authenticated SAML response."""
    attributes = auth.get_attributes()
    name_id = auth.get_nameid()
    email = _first_attribute(attributes, EMAIL_ATTRIBUTES) or name_id
    if not email or "@" not in email:
        raise ValidationError("Email not found in SAML response.", field="email")

    return Principal(
        subject=name_id or email,
        email=email,
        first_name=_first_attribute(attributes, FIRST_NAME_ATTRIBUTES),
        last_name=_first_attribute(attributes, LAST_NAME_ATTRIBUTES),
        provider=config.SAML_PROVIDER_NAME,
    )


def generate_sp_metadata() -> tuple[str, list[str]]:
    from onelogin.saml2.settings import OneLogin_Saml2_Settings

    settings = OneLogin_Saml2_Settings(build_saml_settings(), sp_validation_only=True)
    metadata = settings.get_sp_metadata()
    errors = settings.validate_metadata(metadata)
    return metadata, errors
