"""Handlers for the WebSphere resource kinds the engine manages."""
from .base import ResourceHandler
from .activation_spec import ActivationSpecDesiredState, ActivationSpecHandler
from .auth_alias import AuthAliasDesiredState, AuthAliasHandler
from .classloader import ClassLoaderDesiredState, ClassLoaderHandler
from .connection_factory import ConnectionFactoryDesiredState, ConnectionFactoryHandler
from .keystore import KeystoreDesiredState, KeystoreHandler
from .messaging import MessagingHandler
from .queue import QueueDesiredState, QueueHandler
from .signer_certificate import SignerCertificateDesiredState, SignerCertificateHandler
from .ssl_config_group import Direction, SSLConfigGroupDesiredState, SSLConfigGroupHandler
from .topic import TopicDesiredState, TopicHandler
from .trust_association import TrustAssociationDesiredState, TrustAssociationHandler

__all__ = [
    "ResourceHandler",
    "ActivationSpecDesiredState",
    "ActivationSpecHandler",
    "AuthAliasDesiredState",
    "AuthAliasHandler",
    "ClassLoaderDesiredState",
    "ClassLoaderHandler",
    "ConnectionFactoryDesiredState",
    "ConnectionFactoryHandler",
    "KeystoreDesiredState",
    "KeystoreHandler",
    "MessagingHandler",
    "QueueDesiredState",
    "QueueHandler",
    "SignerCertificateDesiredState",
    "SignerCertificateHandler",
    "Direction",
    "SSLConfigGroupDesiredState",
    "SSLConfigGroupHandler",
    "TopicDesiredState",
    "TopicHandler",
    "TrustAssociationDesiredState",
    "TrustAssociationHandler",
]

# Resource kind registry
RESOURCE_TYPES = {
    "keystore": KeystoreHandler,
    "ssl_config_group": SSLConfigGroupHandler,
    "trust_association": TrustAssociationHandler,
    "auth_alias": AuthAliasHandler,
    "jvm_classloader": ClassLoaderHandler,
    "signer_certificate": SignerCertificateHandler,
    "queue": QueueHandler,
    "topic": TopicHandler,
    "connection_factory": ConnectionFactoryHandler,
    "activation_spec": ActivationSpecHandler,
}


def create_handler(kind: str, *args, **kwargs) -> ResourceHandler:
    """Factory function to create resource handlers."""
    if kind not in RESOURCE_TYPES:
        raise ValueError(f"Unknown resource kind: {kind}")
    return RESOURCE_TYPES[kind](*args, **kwargs)
