from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'kind', 'status', 'created_at')
    list_filter = ('kind', 'status')
    search_fields = ('user__email', 'title')
