from django.db import models


class Property(models.Model):
    PROPERTY_TYPES = (
        ('apartment', 'Apartment'),
        ('house', 'House'),
        ('condo', 'Condo'),
        ('commercial', 'Commercial'),
    )

    property_name = models.CharField(
        max_length=100, verbose_name='Property Name', db_column='name')
    property_type = models.CharField(
        max_length=20, choices=PROPERTY_TYPES, default='apartment')
    property_address1 = models.CharField(max_length=200, blank=True, null=True)
    property_city = models.CharField(max_length=50, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['property_name']
        verbose_name_plural = "Properties"

    def __str__(self):
        return f"{self.property_name}"
