from marshmallow import Schema, EXCLUDE, pre_load


class FormSchema(Schema):
    """Base for request bodies arriving as JSON or multipart form fields."""

    class Meta:
        unknown = EXCLUDE

    # Fields that must stay present (as "") so their own validator reports them
    keep_blank: tuple = ()

    @pre_load
    def _normalize(self, data, **kwargs):
        if hasattr(data, "to_dict"):
            data = data.to_dict()
        out = {}
        for key, value in dict(data or {}).items():
            if isinstance(value, str):
                value = value.strip()
                if not value and key not in self.keep_blank:
                    value = None
            out[key] = value
        return out
