# novayra/services/settings_service.py
from ..models import db, SiteSetting, SettingTypeEnum

SETTING_GROUPS = ['general', 'email', 'payment', 'shipping', 'social', 'seo', 'maintenance']

# key, value, type, description
DEFAULT_SITE_SETTINGS = [
    ('general_site_name', 'Novayra', SettingTypeEnum.TEXT, 'Store name'),
    ('general_site_description', 'Luxury Perfume Brand', SettingTypeEnum.TEXT, 'Store tagline'),
    ('general_contact_email', 'contact@novayra.com', SettingTypeEnum.TEXT, 'Public contact email'),
    ('general_contact_phone', '+91-9876543210', SettingTypeEnum.TEXT, 'Public contact phone'),
    ('general_address', 'Mumbai, Maharashtra, India', SettingTypeEnum.TEXT, 'Store address'),
    ('email_smtp_host', 'smtp.gmail.com', SettingTypeEnum.TEXT, 'SMTP host'),
    ('email_smtp_port', '587', SettingTypeEnum.NUMBER, 'SMTP port'),
    ('email_smtp_user', '', SettingTypeEnum.TEXT, 'SMTP username'),
    ('email_smtp_password', '', SettingTypeEnum.TEXT, 'SMTP password'),
    ('payment_currency', 'INR', SettingTypeEnum.TEXT, 'Currency code'),
    ('payment_currency_symbol', '₹', SettingTypeEnum.TEXT, 'Currency symbol'),
    ('shipping_free_threshold', '5000', SettingTypeEnum.NUMBER, 'Order amount above which shipping is free'),
    ('shipping_default_cost', '200', SettingTypeEnum.NUMBER, 'Default shipping cost'),
    ('social_facebook', '', SettingTypeEnum.TEXT, 'Facebook page URL'),
    ('social_instagram', '', SettingTypeEnum.TEXT, 'Instagram profile URL'),
    ('social_twitter', '', SettingTypeEnum.TEXT, 'Twitter profile URL'),
    ('seo_meta_title', 'Novayra - Luxury Perfumes', SettingTypeEnum.TEXT, 'Default page title'),
    ('seo_meta_description', 'Discover luxury perfumes at Novayra', SettingTypeEnum.TEXT, 'Default meta description'),
    ('seo_meta_keywords', 'perfume, luxury, fragrance, novayra', SettingTypeEnum.TEXT, 'Default meta keywords'),
]


class SettingsService:

    @staticmethod
    def grouped():
        """Settings keyed by the prefix before the first underscore; unknown prefixes fall under general."""
        groups = {name: [] for name in SETTING_GROUPS}
        for setting in SiteSetting.query.order_by(SiteSetting.setting_key).all():
            prefix = setting.setting_key.split('_', 1)[0]
            groups.get(prefix, groups['general']).append(setting.to_dict())
        return groups

    @staticmethod
    def update(settings):
        """
        Updates the value of existing keys only.
        Returns (changes, skipped_keys) where changes maps key -> {old, new}.
        """
        keys = [item['setting_key'] for item in settings]
        existing = {s.setting_key: s for s in SiteSetting.query.filter(SiteSetting.setting_key.in_(keys)).all()}
        changes, skipped = {}, []
        for item in settings:
            setting = existing.get(item['setting_key'])
            if setting is None:
                skipped.append(item['setting_key'])
                continue
            new_value = item.get('setting_value')
            new_value = '' if new_value is None else str(new_value)
            if setting.setting_value != new_value:
                changes[setting.setting_key] = {"old": setting.setting_value, "new": new_value}
                setting.setting_value = new_value
        db.session.commit()
        return changes, skipped

    @staticmethod
    def reset_to_defaults():
        existing = {s.setting_key: s for s in SiteSetting.query.all()}
        for key, value, setting_type, description in DEFAULT_SITE_SETTINGS:
            setting = existing.get(key)
            if setting is None:
                db.session.add(SiteSetting(setting_key=key, setting_value=value,
                                           setting_type=setting_type, description=description))
            else:
                setting.setting_value = value
        db.session.commit()
        return len(DEFAULT_SITE_SETTINGS)

    @staticmethod
    def seed_defaults():
        """Inserts missing default keys without touching existing values."""
        existing_keys = {key for (key,) in db.session.query(SiteSetting.setting_key).all()}
        created = 0
        for key, value, setting_type, description in DEFAULT_SITE_SETTINGS:
            if key not in existing_keys:
                db.session.add(SiteSetting(setting_key=key, setting_value=value,
                                           setting_type=setting_type, description=description))
                created += 1
        return created

    @staticmethod
    def values_with_prefix(prefix):
        return {s.setting_key: s.setting_value
                for s in SiteSetting.query.filter(SiteSetting.setting_key.like(f"{prefix}%")).all()}
