from django import forms

from .constants import TransitionId


class TransitionSelectForm(forms.Form):
    """Choose the active scanner transition (empty clears it)."""

    transition = forms.ChoiceField(
        choices=[('', '---------')] + list(TransitionId.choices),
        required=False,
    )


class KeyCaptureForm(forms.Form):
    """
    Scanner input: either the final ``code`` text or a ``keys`` capture of
    raw keyboard/paste events, decoded server-side so the active keyboard
    layout cannot corrupt the scanned value.
    """

    required_message = 'A scanned code is required'

    code = forms.CharField(max_length=500, required=False, strip=False)
    keys = forms.JSONField(required=False)

    def clean_keys(self):
        keys = self.cleaned_data.get('keys')
        if keys in (None, ''):
            return []
        if not isinstance(keys, list) or not all(isinstance(k, dict) for k in keys):
            raise forms.ValidationError('keys must be a list of key events')
        return keys

    def clean(self):
        cleaned_data = super().clean()
        if not (cleaned_data.get('code') or '').strip() and not cleaned_data.get('keys'):
            raise forms.ValidationError(self.required_message)
        return cleaned_data


class ScanForm(KeyCaptureForm):
    pass


class InquiryForm(KeyCaptureForm):
    required_message = 'Search term is required'
