"""
Profile page selectors and button texts.

Site markup changes often; everything site-specific lives here so the
automator logic does not depend on it.
"""

PROFILE_URL_FRAGMENT = "/in/"

# Edit control, strategy (a): attribute / ARIA selectors in priority order
EDIT_BUTTON_SELECTORS = (
    '[data-control-name="edit_photo"]',
    'button[aria-label*="photo"]',
    'button[aria-label*="picture"]',
    '.pv-top-card__photo-edit-button',
)

# Edit control, strategy (b): the profile photo and its container
PROFILE_PHOTO_SELECTORS = '.pv-top-card__photo img, .profile-photo img, img.pv-top-card-profile-picture__image'
PROFILE_PHOTO_CONTAINERS = '.pv-top-card__photo, .profile-photo, .pv-top-card-profile-picture'

# Edit control, strategies (b) and (c): button-like elements and their texts
BUTTON_LIKE = 'button, [role="button"], a'
EDIT_TEXTS = ("edit photo", "change photo", "edit picture", "change picture")

FILE_INPUT = 'input[type="file"]'

UPLOAD_PROGRESS_SELECTORS = '.upload-progress, .loading, [data-test-id="upload-progress"]'

SAVE_ATTRIBUTE_SELECTORS = ('button[data-control-name="save"]', 'button[data-control-name="apply"]')
SAVE_CLASS_SELECTORS = ('.save-button', '.apply-button')
SAVE_TEXTS = ("save", "apply")

DONE_ATTRIBUTE_SELECTORS = ('button[data-control-name="done"]', 'button[aria-label="Dismiss"]')
DONE_CLASS_SELECTORS = ('.done-button', '.artdeco-modal__dismiss')
DONE_TEXTS = ("done", "close")
