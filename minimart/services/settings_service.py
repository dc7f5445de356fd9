"""Settings Service - store name and PIN."""

from minimart.exceptions import BusinessLogicError
from minimart.models import StoreSettings
from minimart.services import store_service
from minimart.utils.number_format import PIN_PATTERN


class SettingsStore:
    """Settings are owned by the settings screen; the ledger only reads them."""

    def __init__(self, store: store_service.PersistentStore, default_store_name: str = ''):
        self.store = store
        self.default_store_name = default_store_name

    def get(self) -> StoreSettings:
        return StoreSettings.from_dict(
            self.store.get_dict(store_service.SETTINGS),
            default_name=self.default_store_name,
        )

    def save(self, settings: StoreSettings) -> StoreSettings:
        name = (settings.store_name or '').strip()
        if not name:
            raise BusinessLogicError('Store name is required')
        if not PIN_PATTERN.match(settings.pin or ''):
            raise BusinessLogicError('PIN must be exactly 4 digits')
        settings.store_name = name
        self.store.set(store_service.SETTINGS, settings.to_dict())
        return settings

    def store_name(self) -> str:
        return self.get().store_name

    def check_pin(self, pin) -> bool:
        return str(pin or '') == self.get().pin
