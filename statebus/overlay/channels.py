"""Channel catalog of the overlay application."""

from statebus.interfaces.channels import CommandChannel, NotificationChannel
from statebus.interfaces.schema import PayloadSchema, nullable, optional


# === Commands ===

SELECT_ITEM = CommandChannel(
    "select_item",
    PayloadSchema.of(item_id=str),
    "Select an item by identifier",
)

TOGGLE_PANEL = CommandChannel(
    "toggle_panel",
    PayloadSchema.of(panel_id=str),
    "Toggle visibility of a panel by identifier",
)

SHOW_PANELS = CommandChannel(
    "show_panels",
    PayloadSchema.of(panel_ids=(list, tuple)),
    "Show exactly the listed panels and hide the others",
)

UPDATE_SETTINGS = CommandChannel(
    "update_settings",
    PayloadSchema.of(
        use_live_data=optional(bool, allow_none=False),
        refresh_interval=optional(int, allow_none=False),
    ),
    "Change settings; enabling use_live_data switches the data source",
)

LOAD_CONTENT = CommandChannel(
    "load_content",
    PayloadSchema.of(item_id=str),
    "Load the entries of an item",
)

COMMANDS = (SELECT_ITEM, TOGGLE_PANEL, SHOW_PANELS, UPDATE_SETTINGS, LOAD_CONTENT)


# === Notifications ===

ITEM_SELECTED = NotificationChannel(
    "item_selected",
    PayloadSchema.of(item_id=nullable(str)),
)

SETTINGS_CHANGED = NotificationChannel(
    "settings_changed",
    PayloadSchema.of(settings=dict, data_source_changed=bool),
)

CONTENT_LOADED = NotificationChannel(
    "content_loaded",
    PayloadSchema.of(item_id=str, count=int),
)

TOAST = NotificationChannel(
    "toast",
    PayloadSchema.of(message=str, level=str),
    "Ephemeral UI message, never stored",
)

NOTIFICATIONS = (ITEM_SELECTED, SETTINGS_CHANGED, CONTENT_LOADED, TOAST)
