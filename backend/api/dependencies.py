"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

Every service shares one document store, so the transactional
guarantees hold across modules (billing, wallet and consultations all
commit against the same documents).
"""

from typing import TYPE_CHECKING, Optional

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from shared.transactions import IDocumentStore
    from modules.billing.interfaces import IBillingCoordinator
    from modules.consultations.interfaces import IConsultationService
    from modules.experts.interfaces import IExpertService
    from modules.payments.interfaces import IPaymentGateway
    from modules.reaper.interfaces import IReaper
    from modules.video.interfaces import IVideoPlatform
    from modules.wallet.interfaces import IWalletService
    from modules.webhooks.handler import StreamWebhookHandler


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Use reset() to clear all cached services for testing.
    """

    def __init__(self) -> None:
        self._document_store: "IDocumentStore | None" = None
        self._video: "IVideoPlatform | None" = None
        self._video_resolved = False
        self._payments: "IPaymentGateway | None" = None
        self._payments_resolved = False
        self._billing: "IBillingCoordinator | None" = None
        self._wallet: "IWalletService | None" = None
        self._consultations: "IConsultationService | None" = None
        self._experts: "IExpertService | None" = None
        self._reaper: "IReaper | None" = None
        self._webhooks: "StreamWebhookHandler | None" = None

    @property
    def document_store(self) -> "IDocumentStore":
        """Get the shared document store."""
        if self._document_store is None:
            from shared.database import get_document_store
            self._document_store = get_document_store()
        return self._document_store

    @property
    def video(self) -> "Optional[IVideoPlatform]":
        """Get the video platform client, or None when Stream isn't configured."""
        if not self._video_resolved:
            from modules.video.stream import StreamVideoClient
            client = StreamVideoClient()
            self._video = client if client.is_configured else None
            self._video_resolved = True
        return self._video

    @property
    def payments(self) -> "Optional[IPaymentGateway]":
        """Get the payment gateway, or None when Razorpay isn't configured."""
        if not self._payments_resolved:
            from modules.payments.razorpay import RazorpayGateway
            gateway = RazorpayGateway()
            self._payments = gateway if gateway.is_configured else None
            self._payments_resolved = True
        return self._payments

    @property
    def billing(self) -> "IBillingCoordinator":
        """Get the billing coordinator instance."""
        if self._billing is None:
            from modules.billing.service import BillingCoordinator
            self._billing = BillingCoordinator(self.document_store, video_platform=self.video)
        return self._billing

    @property
    def wallet(self) -> "IWalletService":
        """Get the wallet service instance."""
        if self._wallet is None:
            from modules.wallet.service import WalletService
            self._wallet = WalletService(self.document_store, payment_gateway=self.payments)
        return self._wallet

    @property
    def consultations(self) -> "IConsultationService":
        """Get the consultation service instance."""
        if self._consultations is None:
            from modules.consultations.service import ConsultationService
            self._consultations = ConsultationService(
                self.document_store,
                billing=self.billing,
                video_platform=self.video,
            )
        return self._consultations

    @property
    def experts(self) -> "IExpertService":
        """Get the expert service instance."""
        if self._experts is None:
            from modules.experts.service import ExpertService
            self._experts = ExpertService(self.document_store)
        return self._experts

    @property
    def reaper(self) -> "IReaper":
        """Get the sweep instance."""
        if self._reaper is None:
            from modules.reaper.service import Reaper
            self._reaper = Reaper(
                self.document_store,
                consultations=self.consultations,
                billing=self.billing,
            )
        return self._reaper

    @property
    def webhooks(self) -> "StreamWebhookHandler":
        """Get the webhook handler instance."""
        if self._webhooks is None:
            from modules.webhooks.handler import StreamWebhookHandler
            self._webhooks = StreamWebhookHandler(
                self.document_store,
                consultations=self.consultations,
                billing=self.billing,
            )
        return self._webhooks

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._document_store = None
        self._video = None
        self._video_resolved = False
        self._payments = None
        self._payments_resolved = False
        self._billing = None
        self._wallet = None
        self._consultations = None
        self._experts = None
        self._reaper = None
        self._webhooks = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_wallet_service() -> "IWalletService":
    """FastAPI dependency for wallet service."""
    return get_container().wallet


def get_consultation_service() -> "IConsultationService":
    """FastAPI dependency for consultation service."""
    return get_container().consultations


def get_expert_service() -> "IExpertService":
    """FastAPI dependency for expert service."""
    return get_container().experts


def get_reaper() -> "IReaper":
    """FastAPI dependency for the sweep."""
    return get_container().reaper


def get_webhook_handler() -> "StreamWebhookHandler":
    """FastAPI dependency for the webhook handler."""
    return get_container().webhooks
