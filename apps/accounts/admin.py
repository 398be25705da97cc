from django.contrib import admin

from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ['email', 'name', 'clerk_id', 'created_at']
    search_fields = ['email', 'name', 'clerk_id']
    readonly_fields = ['created_at', 'updated_at']
