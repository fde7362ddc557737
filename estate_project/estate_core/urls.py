from django.urls import path

from . import views

app_name = "estate_core"

urlpatterns = [
    path("layouts/", views.create_layout_view, name="layout-create"),
    path("layouts/<int:pk>/update/", views.update_layout_view, name="layout-update"),
    path("layouts/<int:pk>/delete/", views.delete_layout_view, name="layout-delete"),
    path("plots/", views.create_plot_view, name="plot-create"),
    path("plots/<int:pk>/update/", views.update_plot_view, name="plot-update"),
    path("plots/<int:pk>/delete/", views.delete_plot_view, name="plot-delete"),
    path("clients/", views.create_client_view, name="client-create"),
    path("clients/<int:pk>/update/", views.update_client_view, name="client-update"),
    path("clients/<int:pk>/delete/", views.delete_client_view, name="client-delete"),
    path("clients/<int:pk>/interactions/", views.add_interaction_view, name="client-interaction"),
    path("expenses/", views.create_expense_view, name="expense-create"),
    path("expenses/<int:pk>/update/", views.update_expense_view, name="expense-update"),
    path("expenses/<int:pk>/delete/", views.delete_expense_view, name="expense-delete"),
    path("expense-categories/", views.create_category_view, name="category-create"),
    path("expense-categories/<int:pk>/delete/", views.delete_category_view, name="category-delete"),
    path("billings/", views.create_billing_view, name="billing-create"),
    path("billings/<int:pk>/", views.billing_detail_view, name="billing-detail"),
    path("billings/<int:pk>/update/", views.update_billing_view, name="billing-update"),
    path("billings/<int:pk>/delete/", views.delete_billing_view, name="billing-delete"),
    path("billings/<int:pk>/cancel/", views.cancel_billing_view, name="billing-cancel"),
    path("billings/<int:pk>/payments/", views.add_payment_view, name="billing-payment"),
    path("ledger/summary/", views.ledger_summary_view, name="ledger-summary"),
    path("attachments/", views.add_attachment_view, name="attachment-create"),
    path("attachments/<int:pk>/delete/", views.delete_attachment_view, name="attachment-delete"),
    path("settings/", views.update_settings_view, name="settings-update"),
    path("backups/", views.create_backup_view, name="backup-create"),
    path("backups/restore/", views.restore_backup_view, name="backup-restore"),
    path("activity/<str:entity_type>/<int:pk>/", views.activity_view, name="activity"),
]
