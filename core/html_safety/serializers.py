from rest_framework import serializers


class HTMLSafetySerializer(serializers.Serializer):
    """
    HTML to filter plus optional policy flags.

    Flags that are not sent fall back to settings.HTML_SAFETY_POLICY.
    """
    html = serializers.CharField(allow_blank=True, trim_whitespace=False)
    no_applet = serializers.BooleanField(required=False)
    no_object = serializers.BooleanField(required=False)
    no_embed = serializers.BooleanField(required=False)
    no_svg = serializers.BooleanField(required=False)
    no_int_src_load = serializers.BooleanField(required=False)
    no_ext_src_load = serializers.BooleanField(required=False)
    no_javascript = serializers.BooleanField(required=False)
    replacement_str = serializers.CharField(required=False, allow_blank=True, trim_whitespace=False)

    def policy_flags(self):
        """Flags explicitly sent by the client."""
        return {
            name: value
            for name, value in self.validated_data.items()
            if name != 'html'
        }
