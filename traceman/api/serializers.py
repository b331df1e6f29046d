"""
Traceman API Serializers.

Documents render themselves through `as_dict`; these serializers only
validate action payloads.
"""

from rest_framework import serializers


class TransitionSerializer(serializers.Serializer):
    """Serializer for the schedule item transition action."""

    status = serializers.CharField(required=True, help_text="Target status (e.g., 'completed')")
    actualQty = serializers.DecimalField(max_digits=12, decimal_places=3, required=False, allow_null=True)
    qualityScore = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=5)
    notes = serializers.CharField(required=False, allow_blank=True)
    deviations = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    ingredientSuppliers = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    batchCodes = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    sellByDates = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    receivingDates = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    packingBatchCode = serializers.ListField(child=serializers.CharField(), required=False)


class RescheduleSerializer(serializers.Serializer):
    """Serializer for the schedule item reschedule (drag and drop) action."""

    date = serializers.DateField(required=True)
    startTime = serializers.CharField(required=False, allow_blank=True, default="")
    endTime = serializers.CharField(required=False, allow_blank=True, default="")
