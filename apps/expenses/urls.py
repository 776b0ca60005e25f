from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'expenses'

# Router for ViewSets
router = DefaultRouter()
router.register(r'', views.ExpenseViewSet, basename='expense')

urlpatterns = [
    # Expense ViewSet routes
    # GET    /api/expenses/?event_slug=        - List event expenses (paginated)
    # POST   /api/expenses/                    - Create expense
    # GET    /api/expenses/{id}/               - Get expense with obligations
    # PATCH  /api/expenses/{id}/               - Update expense
    # DELETE /api/expenses/{id}/               - Delete expense and stored proofs

    # Custom expense actions
    # GET    /api/expenses/{id}/participants/   - List obligations (paginated)
    # GET    /api/expenses/{id}/summary/        - Settlement summary
    # POST   /api/expenses/{id}/pay/            - Pay obligation (multipart)
    # GET    /api/expenses/{id}/payment_proofs/ - List payment proofs
    # POST   /api/expenses/{id}/payment_proofs/ - Upload payment proofs (multipart)
    # DELETE /api/expenses/{id}/payment_proofs/ - Delete payment proofs

    path('', include(router.urls)),
]
