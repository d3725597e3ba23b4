from partsmith import create_registry, ensure_kernel
from partsmith.config import load_config
from partsmith.quality_gate import check_solid

def check_geometry():
    print("Initialising kernel...")
    ensure_kernel()
    kernel_config = load_config().kernel

    failures = 0
    for product in create_registry():
        values = product.adjust(product.defaults()).values
        print(f"Building {product.id} at defaults...")
        solid = product.build(values)
        gate = check_solid(solid)
        (x0, y0, z0), (x1, y1, z1) = solid.bounding_box()
        print(f"  Volume: {solid.volume:.1f} mm^3")
        print(f"  Extent: {x1 - x0:.1f} x {y1 - y0:.1f} x {z1 - z0:.1f} mm")
        mesh = solid.mesh(kernel_config.mesh_tolerance, kernel_config.angular_tolerance)
        print(f"  Mesh: {mesh.vertex_count} vertices, {mesh.triangle_count} triangles")
        solid.dispose()

        if gate.is_valid:
            print("  PASS")
        else:
            failures += 1
            print(f"  FAIL: {gate.errors}")

    if failures:
        print(f"FAIL: {failures} product(s) produced invalid geometry.")
    else:
        print("PASS: All products built.")

if __name__ == "__main__":
    check_geometry()
